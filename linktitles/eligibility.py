"""Decide whether a located URL may be rewritten.

A URL is left alone when it is already part of a formatted link, points at an
image, or sits inside a code span or a ``{{command ...}}`` embed. The one
exception is the ``video`` embed: its URL stays in place and a readable link
is added as a child block instead.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from linktitles.formats import FormatSpec
from linktitles.url_matcher import UrlMatch

IMAGE_EXTENSION = re.compile(r"\.(gif|jpe?g|tiff?|png|webp|bmp|tga|psd|ai)$", re.IGNORECASE)

# Fenced blocks first so ``` is never read as three inline spans.
CODE_SPAN = re.compile(r"```.*?```|`[^`\n]*`", re.DOTALL)
COMMAND_SPAN = re.compile(r"\{\{\s*(\w*)(?:[^}]|\}(?!\}))*\}\}")
# Existing org or markdown links, so URLs inside their titles stay put.
LINK_SPAN = re.compile(r"\[\[[^\]]*\]\[[^\]]*\]\]|\[[^\]]*\]\([^)]*\)")

VIDEO_COMMAND = "video"
COMMAND_CLOSE = "}}"


class Decision(Enum):
    REWRITE_INLINE = "rewrite_inline"
    SKIP = "skip"
    REWRITE_AS_CHILD = "rewrite_as_child"


@dataclass(frozen=True)
class Verdict:
    decision: Decision
    url: str


@dataclass
class Exclusions:
    """Code, command and link spans of one text, as sorted ``(start, end)`` pairs."""

    code: list = field(default_factory=list)
    commands: list = field(default_factory=list)
    command_names: list = field(default_factory=list)
    links: list = field(default_factory=list)


def scan_exclusions(text: str) -> Exclusions:
    found = Exclusions()
    for m in CODE_SPAN.finditer(text):
        found.code.append((m.start(), m.end()))
    for m in COMMAND_SPAN.finditer(text):
        found.commands.append((m.start(), m.end()))
        found.command_names.append(m.group(1))
    for m in LINK_SPAN.finditer(text):
        found.links.append((m.start(), m.end()))
    return found


def _span_at(spans: list, index: int) -> Optional[int]:
    pos = bisect_right(spans, (index, float("inf"))) - 1
    if pos >= 0:
        start, end = spans[pos]
        if start < index < end:
            return pos
    return None


def is_already_formatted(text: str, start: int, fmt: FormatSpec) -> bool:
    return start >= 2 and text[start - 2:start] == fmt.link_prefix


def is_image(url: str) -> bool:
    path = urlsplit(url).path if "://" in url else url.split("?", 1)[0]
    return bool(IMAGE_EXTENSION.search(path))


def is_inside_link(exclusions: Exclusions, start: int) -> bool:
    return _span_at(exclusions.links, start) is not None


def is_wrapped_in_code(exclusions: Exclusions, start: int) -> bool:
    return _span_at(exclusions.code, start) is not None


def command_at(exclusions: Exclusions, start: int) -> Optional[str]:
    """Name of the command whose braces enclose ``start``, if any."""
    pos = _span_at(exclusions.commands, start)
    if pos is None:
        return None
    return exclusions.command_names[pos]


def classify(
    text: str,
    match: UrlMatch,
    fmt: FormatSpec,
    exclusions: Optional[Exclusions] = None,
) -> Verdict:
    """Apply the skip rules in order; the first rule that fires wins."""
    url = match.url
    if exclusions is None:
        exclusions = scan_exclusions(text)
    if is_already_formatted(text, match.start, fmt) or is_inside_link(exclusions, match.start):
        return Verdict(Decision.SKIP, url)
    if is_image(url):
        return Verdict(Decision.SKIP, url)

    if is_wrapped_in_code(exclusions, match.start):
        return Verdict(Decision.SKIP, url)

    command = command_at(exclusions, match.start)
    if command is None:
        return Verdict(Decision.REWRITE_INLINE, url)
    if command != VIDEO_COMMAND:
        return Verdict(Decision.SKIP, url)

    if url.endswith(COMMAND_CLOSE):
        url = url[:-len(COMMAND_CLOSE)]
    if not url or is_already_formatted(text, match.start, fmt):
        return Verdict(Decision.SKIP, url)
    return Verdict(Decision.REWRITE_AS_CHILD, url)


__all__ = [
    "Decision",
    "Verdict",
    "Exclusions",
    "scan_exclusions",
    "is_already_formatted",
    "is_image",
    "is_inside_link",
    "is_wrapped_in_code",
    "command_at",
    "classify",
]
