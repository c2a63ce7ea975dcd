"""
Hyperlink extraction from HTML pages.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Set
from urllib.parse import urljoin

from bs4 import BeautifulSoup, SoupStrainer

# Parse only navigation targets and <base> (faster link extraction)
LINK_STRAINER = SoupStrainer(["a", "area", "base"])


def extract_links(
    html: str,
    base_url: str,
    exclude_selectors: Iterable[str] = (),
) -> Iterator[str]:
    """
    Yield href targets of <a> and <area> tags in document order.

    Targets are resolved against the page's <base href> when present,
    otherwise against base_url. Hrefs that cannot be resolved at all are
    skipped. Links inside elements matching any of
    exclude_selectors are skipped. Each call re-parses the document, so the
    sequence can be restarted by calling again.
    """
    selectors = [s for s in exclude_selectors if s.strip()]
    if selectors:
        # Ancestor checks need the full tree
        soup = BeautifulSoup(html, "lxml")
    else:
        soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)

    base_tag = soup.find("base", href=True)
    if base_tag and base_tag["href"].strip():
        try:
            base_url = urljoin(base_url, base_tag["href"].strip())
        except ValueError:
            # Unusable <base>; resolve against the page URL
            pass

    excluded: Set[int] = set()
    for selector in selectors:
        for container in soup.select(selector):
            excluded.add(id(container))

    for tag in soup.find_all(["a", "area"], href=True):
        href = tag["href"].strip()
        if not href:
            continue
        if excluded and _inside(tag, excluded):
            continue
        try:
            link = urljoin(base_url, href)
        except ValueError:
            # e.g. "http://[bad/"; skip it and keep the rest of the page
            continue
        yield link


def _inside(tag, container_ids: Set[int]) -> bool:
    """Check if tag or any of its ancestors is one of the excluded elements."""
    if id(tag) in container_ids:
        return True
    return any(id(parent) in container_ids for parent in tag.parents)
