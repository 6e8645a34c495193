"""Hook the rewrite engine into the host: one command and one change listener."""

import logging
import uuid as uuidlib
from typing import Optional

from linktitles.formats import FormatSpec, get_format
from linktitles.host import BlockStore, ChangeEvent, HostApp
from linktitles.logging_config import logging_context
from linktitles.rewrite_engine import rewrite_block
from linktitles.tasks import dispatch_each
from linktitles.title_resolver import TitleResolver

logger = logging.getLogger(__name__)

COMMAND_KEY = "format-url-titles"
COMMAND_LABEL = "Format url titles"


async def get_format_settings(store: BlockStore) -> Optional[FormatSpec]:
    configs = await store.get_user_configs() or {}
    preferred = configs.get("preferred_format") or configs.get("preferredFormat")
    fmt = get_format(preferred)
    if fmt is None:
        logger.info("No usable preferred format (%r), nothing to do", preferred)
    return fmt


async def _dispatch(store: BlockStore, resolver: TitleResolver, uuids, invocation: str) -> list:
    uuids = [u for u in uuids if u]
    if not uuids:
        return []
    with logging_context(invocation=invocation):
        fmt = await get_format_settings(store)
        if fmt is None:
            return []
        return dispatch_each(
            (f"rewrite-{u}", rewrite_block(store, u, fmt, resolver.resolve))
            for u in uuids
        )


async def format_selected_blocks(store: BlockStore, resolver: TitleResolver) -> list:
    """Rewrite every selected block, one task per block."""
    selected = await store.get_selected_blocks() or []
    invocation = f"command-{uuidlib.uuid4().hex[:8]}"
    return await _dispatch(store, resolver, [b.uuid for b in selected], invocation)


async def handle_db_change(payload: dict, store: BlockStore, resolver: TitleResolver) -> list:
    """Rewrite the block the user just left by inserting a new empty one."""
    event = ChangeEvent.from_payload(payload or {})
    invocation = f"change-{uuidlib.uuid4().hex[:8]}"
    return await _dispatch(store, resolver, list(event.blocks_to_rewrite()), invocation)


def register(app: HostApp, store: BlockStore, resolver: Optional[TitleResolver] = None) -> bool:
    """Register the command and the change listener.

    Returns False when the command could not be registered; the change
    listener is subscribed either way.
    """
    resolver = resolver or TitleResolver()

    async def on_command(_event=None):
        return await format_selected_blocks(store, resolver)

    async def on_change(payload):
        return await handle_db_change(payload, store, resolver)

    registered = True
    try:
        app.register_command(COMMAND_KEY, COMMAND_LABEL, on_command)
    except Exception:
        logger.exception("Failed to register command %s", COMMAND_KEY)
        registered = False

    app.on_changed(on_change)
    return registered
