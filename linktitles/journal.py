"""Append-only JSON Lines record of what each rewrite did to a block."""

import os
import json
from datetime import datetime
import logging

LOG_PATH = os.getenv("JOURNAL_PATH", "data/journal.json")

# Rotate the journal once it grows past this many bytes
MAX_LOG_SIZE = 5 * 1024 * 1024

logger = logging.getLogger("journal")


def _rotate_log(path):
    if os.path.exists(path) and os.path.getsize(path) > MAX_LOG_SIZE:
        ts = datetime.now().strftime("%Y%m%d%H%M%S")
        os.rename(path, f"{path}.{ts}")


def _append(path, record):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    _rotate_log(path)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def log_event(event):
    """Timestamp ``event`` and append it to the journal; failures are only logged."""
    try:
        _append(LOG_PATH, {"ts": datetime.now().isoformat(), **event})
    except Exception:
        logger.exception("Error writing journal event")


def log_rewrite(uuid, result):
    log_event(
        {
            "event": "block_rewritten",
            "uuid": uuid,
            "rewritten": [{"url": r.url, "title": r.title} for r in result.rewrites],
            "children": [c.url for c in result.children],
        }
    )
