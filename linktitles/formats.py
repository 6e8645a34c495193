"""Link renderings for the two supported note syntaxes."""

from dataclasses import dataclass
from typing import Callable, Optional

MARKDOWN = "markdown"
ORG = "org"


@dataclass(frozen=True)
class FormatSpec:
    name: str
    # Two characters found right before the URL in an already formatted link.
    link_prefix: str
    render: Callable[[str, str], str]


FORMAT_SETTINGS = {
    MARKDOWN: FormatSpec(
        name=MARKDOWN,
        link_prefix="](",
        render=lambda title, url: f"[{title}]({url})",
    ),
    ORG: FormatSpec(
        name=ORG,
        link_prefix="[[",
        render=lambda title, url: f"[[{url}][{title}]]",
    ),
}


def get_format(preferred: Optional[str]) -> Optional[FormatSpec]:
    """Return the format for a host preference value, or None when unknown."""
    if not preferred:
        return None
    return FORMAT_SETTINGS.get(str(preferred).strip().lower())


__all__ = ["FormatSpec", "FORMAT_SETTINGS", "MARKDOWN", "ORG", "get_format"]
