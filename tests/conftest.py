"""
Shared fixtures: an in-memory stand-in for requests.Session serving a
fixed set of pages.
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest
from requests.structures import CaseInsensitiveDict

HTML = "text/html; charset=utf-8"


class FakeResponse:
    def __init__(
        self,
        url: str,
        status_code: int = 200,
        text: str = "",
        content_type: Optional[str] = HTML,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.text = text
        self.headers = CaseInsensitiveDict()
        if content_type is not None:
            self.headers["Content-Type"] = content_type
        self.closed = False

    def close(self) -> None:
        self.closed = True


Route = Union[FakeResponse, BaseException]


class FakeSession:
    """
    Serves canned responses keyed by exact URL; anything else is a 404.

    hooks[url] runs inside get() before the response is returned, which
    lets a test hold a fetch in flight.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.hooks: Dict[str, Callable[[], None]] = {}
        self.headers: Dict[str, str] = {}
        self.calls: List[Tuple[str, dict]] = []
        self._lock = threading.Lock()

    def get(self, url: str, **kwargs) -> FakeResponse:
        with self._lock:
            self.calls.append((url, kwargs))
        hook = self.hooks.get(url)
        if hook is not None:
            hook()
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(url, 404, "<h1>Not found</h1>")
        if isinstance(route, BaseException):
            raise route
        return route

    def close(self) -> None:
        pass

    @property
    def requested(self) -> List[str]:
        with self._lock:
            return [url for url, _ in self.calls]


def page(url: str, *links: str, status_code: int = 200) -> FakeResponse:
    """An HTML page whose body is a list of links."""
    body = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return FakeResponse(url, status_code, f"<html><body>{body}</body></html>")


def site(pages: Dict[str, Tuple[str, ...]]) -> FakeSession:
    """Build a FakeSession from {url: (links...)}."""
    return FakeSession({url: page(url, *links) for url, links in pages.items()})


@pytest.fixture
def three_page_site() -> FakeSession:
    return FakeSession({
        "https://example.com/": page(
            "https://example.com/",
            "https://example.com/a",
            "https://example.com/b",
        ),
        "https://example.com/a": page("https://example.com/a"),
        "https://example.com/b": FakeResponse("https://example.com/b", 404, "gone"),
    })
