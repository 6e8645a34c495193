"""Turn a URL into a human readable title.

Titles come from an ordered list of providers. Site specific providers go
first; the generic HTML provider accepts every URL and comes last. A provider
that fails is logged and the next one is tried, so ``resolve`` never raises.
"""

import os
import re
import logging
from typing import Optional, Protocol, Sequence

from bs4 import BeautifulSoup

from linktitles import text_helpers

logger = logging.getLogger(__name__)

TITLE_SEPARATOR = os.getenv("TITLE_SEPARATOR", " — ")

TITLE_PATTERNS = [
    re.compile(
        r"<meta\s+(?:property|name)=[\"'](?:og|twitter):title[\"']\s+"
        r"content=([\"'])(?P<title>.*?)\1",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(r"<title\s?[^>]*>(?P<title>[^<]*)</title>", re.IGNORECASE),
]


class TitleProvider(Protocol):
    def matches(self, url: str) -> bool:
        ...

    async def fetch_title(self, url: str) -> str:
        ...


def decode_html(value: str) -> str:
    """Unescape HTML entities in an extracted title."""
    if not value:
        return ""
    return BeautifulSoup(value, "html.parser").get_text()


def extract_title(html: str) -> str:
    """Return the first non-empty title found by ``TITLE_PATTERNS``."""
    for pattern in TITLE_PATTERNS:
        m = pattern.search(html or "")
        if m:
            title = " ".join(decode_html(m.group("title")).split())
            if title:
                return title
    return ""


class RedditTitleProvider:
    """Read titles of reddit comment threads from the JSON API.

    url: https://www.reddit.com/r/logseq/comments/13yeg3i/some_title/
    api: https://www.reddit.com/api/info.json?id=t3_13yeg3i
    """

    URL_REGEX = re.compile(r"reddit\.com/r/[^/]+/comments/([^/?#]+)", re.IGNORECASE)
    API_URL = "https://www.reddit.com/api/info.json?id=t3_{id}"

    def __init__(self, separator: Optional[str] = None):
        self.separator = TITLE_SEPARATOR if separator is None else separator

    def matches(self, url: str) -> bool:
        return self.URL_REGEX.search(url) is not None

    def api_url(self, url: str) -> Optional[str]:
        m = self.URL_REGEX.search(url)
        return self.API_URL.format(id=m.group(1)) if m else None

    async def fetch_title(self, url: str) -> str:
        api = self.api_url(url)
        if not api:
            return ""
        data = await text_helpers.fetch_json(api)
        children = ((data or {}).get("data") or {}).get("children") or []
        post = (children[0].get("data") if children else None) or {}
        title = (post.get("title") or "").strip()
        if not title:
            return ""
        prefix = post.get("subreddit_name_prefixed")
        if prefix:
            return f"{prefix}{self.separator}{title}"
        return title


class HtmlTitleProvider:
    """Scrape ``og:title``/``twitter:title`` or ``<title>`` from the page."""

    def matches(self, url: str) -> bool:
        return True

    async def fetch_title(self, url: str) -> str:
        html = await text_helpers.fetch_html(url)
        return extract_title(html)


class TitleResolver:
    def __init__(self, providers: Optional[Sequence[TitleProvider]] = None):
        if providers is None:
            providers = [RedditTitleProvider(), HtmlTitleProvider()]
        self.providers = list(providers)

    def register_provider(self, provider: TitleProvider) -> None:
        """Add a site specific provider ahead of the generic HTML one."""
        for i, existing in enumerate(self.providers):
            if isinstance(existing, HtmlTitleProvider):
                self.providers.insert(i, provider)
                return
        self.providers.append(provider)

    async def resolve(self, url: str) -> str:
        for provider in self.providers:
            if not provider.matches(url):
                continue
            try:
                title = await provider.fetch_title(url)
            except Exception:
                logger.exception(
                    "%s failed to fetch title for %s", type(provider).__name__, url
                )
                continue
            if title:
                return title
        logger.info("No title found for %s", url)
        return ""


def default_resolver() -> TitleResolver:
    return TitleResolver()


__all__ = [
    "TitleProvider",
    "TitleResolver",
    "RedditTitleProvider",
    "HtmlTitleProvider",
    "decode_html",
    "extract_title",
    "default_resolver",
]
