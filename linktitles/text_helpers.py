import os
import asyncio
import ipaddress
from typing import Optional
from urllib.parse import urlparse

import aiohttp


def _env_set(name):
    return {d.strip().lower() for d in os.getenv(name, "").split(",") if d.strip()}


def _env_timeout() -> Optional[float]:
    value = os.getenv("URL_FETCH_TIMEOUT")
    return float(value) if value else None


URL_FETCH_TIMEOUT = _env_timeout()
USER_AGENT = os.getenv("FETCH_USER_AGENT", "Mozilla/5.0 (linktitles)")
# Titles live in <head>; nothing past this many bytes is read.
MAX_HTML_BYTES = int(os.getenv("MAX_HTML_BYTES", 512 * 1024))
HTML_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}

BLOCKED_DOMAINS_DEFAULT = {"localhost"} | _env_set("BLOCKED_DOMAINS")
ALLOWED_DOMAINS_DEFAULT = _env_set("ALLOWED_DOMAINS")
BLOCKED_IP_RANGES = [
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


class FetchError(Exception):
    """Raised when a URL is refused before any request is made."""


def normalize_url(url: str) -> str:
    """Give scheme-less ``www.`` matches an https scheme."""
    if "://" not in url:
        return f"https://{url}"
    return url


async def check_host(url, allowed_domains=None, blocked_domains=None) -> None:
    """Refuse non-http schemes, blocked domains and private addresses."""
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        raise FetchError(f"Invalid URL scheme: {parsed.scheme!r}")

    host = parsed.hostname
    if not host:
        raise FetchError("Invalid hostname")

    allowed = set(allowed_domains or ALLOWED_DOMAINS_DEFAULT)
    blocked = set(blocked_domains or []) | BLOCKED_DOMAINS_DEFAULT

    if allowed and host not in allowed:
        raise FetchError(f"Domain '{host}' not allowed")
    if host in blocked:
        raise FetchError(f"Domain '{host}' is blocked")

    try:
        ip = ipaddress.ip_address(host)
        ip_addresses = [ip]
    except ValueError:
        loop = asyncio.get_running_loop()
        addrinfos = await loop.getaddrinfo(host, None)
        ip_addresses = [ipaddress.ip_address(a[4][0]) for a in addrinfos]

    for ip in ip_addresses:
        for net in BLOCKED_IP_RANGES:
            if ip in net:
                raise FetchError(f"IP address {ip} not allowed")


def _timeout() -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=URL_FETCH_TIMEOUT)


async def _read_prefix(resp, limit: int) -> bytes:
    body = b""
    while len(body) < limit:
        chunk = await resp.content.read(limit - len(body))
        if not chunk:
            break
        body += chunk
    return body


async def fetch_html(url, allowed_domains=None, blocked_domains=None) -> str:
    """Fetch the start of a page and return it as text.

    Non-HTML responses (PDFs, archives, media) are not downloaded and yield
    an empty string. Raises ``FetchError`` for refused URLs and lets aiohttp
    errors (including non-2xx statuses) propagate to the caller.
    """
    url = normalize_url(url)
    await check_host(url, allowed_domains, blocked_domains)
    headers = {"User-Agent": USER_AGENT}
    async with aiohttp.ClientSession() as session:
        async with session.get(url, timeout=_timeout(), headers=headers) as resp:
            resp.raise_for_status()
            if resp.content_type not in HTML_CONTENT_TYPES:
                return ""
            body = await _read_prefix(resp, MAX_HTML_BYTES)
    try:
        return body.decode(resp.charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


async def fetch_json(url):
    """GET a JSON API endpoint and return the decoded payload."""
    headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    async with aiohttp.ClientSession() as session:
        async with session.get(url, timeout=_timeout(), headers=headers) as resp:
            resp.raise_for_status()
            return await resp.json()


__all__ = ["FetchError", "normalize_url", "check_host", "fetch_html", "fetch_json"]
