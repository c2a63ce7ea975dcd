"""
URL normalization, origin checks and exclusion filters.
"""
from __future__ import annotations

import fnmatch
import re
from typing import Iterable, List, Optional, Pattern, Tuple
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

from linkscan.errors import InvalidUrl

CRAWLABLE_SCHEMES: frozenset[str] = frozenset(("http", "https"))
DEFAULT_PORTS = {"http": 80, "https": 443}

Origin = Tuple[str, str]


def normalize_url(url: str, base: str) -> Optional[str]:
    """
    Normalize URL for deduplication and comparison.

    - Joins relative URLs against base
    - Drops fragments (#...)
    - Normalizes scheme/host case
    - Removes default ports (:80, :443)
    - Maps an empty path to "/"
    - Keeps querystrings (they matter for uniqueness)

    Returns None for links that are not crawlable (mailto:, javascript:,
    tel:, data:, ...). Raises InvalidUrl for malformed http(s) URLs.
    """
    if not url or not url.strip():
        return None

    try:
        joined, _ = urldefrag(urljoin(base, url.strip()))
        parsed = urlparse(joined)
        scheme = parsed.scheme.lower()
        if scheme not in CRAWLABLE_SCHEMES:
            return None
        port = parsed.port
    except ValueError as e:
        raise InvalidUrl(f"Malformed URL {url!r}: {e}") from e

    hostname = (parsed.hostname or "").lower()
    if not hostname:
        raise InvalidUrl(f"URL has no host: {url!r}")

    if port is None or port == DEFAULT_PORTS[scheme]:
        netloc = hostname
    else:
        netloc = f"{hostname}:{port}"

    # IPv6 literals keep their brackets
    if ":" in hostname:
        netloc = netloc.replace(hostname, f"[{hostname}]", 1)

    return urlunparse((
        scheme,
        netloc,
        parsed.path or "/",
        parsed.params,
        parsed.query,
        "",
    ))


def origin_of(url: str) -> Origin:
    """Return the (scheme, netloc) pair of a normalized URL."""
    parsed = urlparse(url)
    return parsed.scheme, parsed.netloc


def is_same_origin(url: str, origin: Origin, include_subdomains: bool = False) -> bool:
    """Check if URL has the same scheme and netloc as the origin."""
    scheme, netloc = origin_of(url)
    if (scheme, netloc) == origin:
        return True
    if not include_subdomains:
        return False
    # Subdomains match on host only, any scheme or port
    host = urlparse(url).hostname or ""
    origin_host = urlparse(f"{origin[0]}://{origin[1]}").hostname or ""
    return host.endswith("." + origin_host)


class UrlFilter:
    """Matches URLs against regex and shell-style wildcard exclusions."""

    def __init__(self, regexes: Iterable[str] = (), wildcards: Iterable[str] = ()) -> None:
        self._regexes: List[Pattern[str]] = [re.compile(r) for r in regexes]
        # Wildcards must match the whole URL
        self._wildcards: List[Pattern[str]] = [re.compile(fnmatch.translate(w)) for w in wildcards]

    def __bool__(self) -> bool:
        return bool(self._regexes or self._wildcards)

    def excludes(self, url: str) -> bool:
        return (
            any(p.search(url) for p in self._regexes)
            or any(p.match(url) for p in self._wildcards)
        )
