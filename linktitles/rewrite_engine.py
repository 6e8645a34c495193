"""Replace bare URLs in a block with titled links.

Matches and exclusion spans are computed once against the original text.
The rewrite is a fold over the matches: untouched slices of the snapshot are
copied through, rewritten URLs are swapped for their rendered link, and a
running ``delta`` keeps track of where each replacement lands in the new text.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from linktitles import journal
from linktitles.eligibility import Decision, classify, scan_exclusions
from linktitles.formats import FormatSpec
from linktitles.host import BlockStore
from linktitles.logging_config import logging_context
from linktitles.url_matcher import contains_url, find_urls

logger = logging.getLogger(__name__)

ResolveFunc = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class Rewrite:
    url: str
    title: str
    start: int
    new_start: int


@dataclass(frozen=True)
class ChildLink:
    url: str
    content: str


@dataclass
class RewriteState:
    # End of the last snapshot character already copied to the output.
    cursor: int = 0
    # Length of the output minus the length of the snapshot consumed so far.
    delta: int = 0


@dataclass
class RewriteResult:
    text: str
    rewrites: list = field(default_factory=list)
    children: list = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.rewrites)


async def rewrite_text(text: str, fmt: FormatSpec, resolve: ResolveFunc) -> RewriteResult:
    """Rewrite every eligible URL of ``text``; titles are resolved one by one."""
    exclusions = scan_exclusions(text)
    state = RewriteState()
    parts = []
    result = RewriteResult(text=text)

    for match in find_urls(text):
        verdict = classify(text, match, fmt, exclusions)
        if verdict.decision is Decision.SKIP:
            continue

        title = await resolve(verdict.url)
        if not title:
            continue

        rendered = fmt.render(title, verdict.url)
        if verdict.decision is Decision.REWRITE_AS_CHILD:
            result.children.append(ChildLink(verdict.url, rendered))
            continue

        parts.append(text[state.cursor:match.start])
        parts.append(rendered)
        result.rewrites.append(
            Rewrite(match.url, title, match.start, match.start + state.delta)
        )
        state.cursor = match.end
        state.delta += len(rendered) - len(match.url)

    parts.append(text[state.cursor:])
    result.text = "".join(parts)
    return result


async def _add_child_link(store: BlockStore, block, child: ChildLink) -> bool:
    # Only the first child is checked for an earlier run's link.
    first = block.first_child()
    if first is not None and child.url in (first.content or ""):
        logger.debug("Child link for %s already present", child.url)
        return False
    await store.insert_block(
        block.uuid, child.content, before=False, sibling=False, focus=True
    )
    return True


async def rewrite_block(
    store: BlockStore, uuid: Optional[str], fmt: FormatSpec, resolve: ResolveFunc
) -> Optional[RewriteResult]:
    """Rewrite one block in place; returns None when nothing was written."""
    if not uuid:
        return None

    with logging_context(block_uuid=uuid):
        block = await store.get_block(uuid)
        if block is None:
            logger.info("Block %s not found, skipping", uuid)
            return None

        text = block.content or ""
        if not contains_url(text):
            return None

        result = await rewrite_text(text, fmt, resolve)
        for child in result.children:
            await _add_child_link(store, block, child)

        await store.update_block(block.uuid, result.text)
        logger.info(
            "Rewrote %d url(s), added %d child link(s)",
            len(result.rewrites),
            len(result.children),
        )
        journal.log_rewrite(block.uuid, result)
        return result


__all__ = [
    "Rewrite",
    "ChildLink",
    "RewriteState",
    "RewriteResult",
    "rewrite_text",
    "rewrite_block",
]
