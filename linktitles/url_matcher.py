"""Locate bare URLs inside note text."""

import re
from dataclasses import dataclass
from typing import Iterator

_LABEL = r"[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]"
_TAIL = r"[^\)\s]{2,}"

# Order matters: the longer label forms are tried before the short ones.
URL_PATTERN = re.compile(
    rf"https?://(?:www\.|(?!www)){_LABEL}\.{_TAIL}"
    rf"|www\.{_LABEL}\.{_TAIL}"
    rf"|https?://(?:www\.|(?!www))[a-zA-Z0-9]+\.{_TAIL}"
    rf"|www\.[a-zA-Z0-9]+\.{_TAIL}",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class UrlMatch:
    url: str
    start: int
    end: int


def find_urls(text: str) -> Iterator[UrlMatch]:
    """Yield every URL in ``text`` in ascending order of position."""
    for m in URL_PATTERN.finditer(text):
        yield UrlMatch(m.group(0), m.start(), m.end())


def contains_url(text: str) -> bool:
    return bool(text) and URL_PATTERN.search(text) is not None


__all__ = ["URL_PATTERN", "UrlMatch", "find_urls", "contains_url"]
