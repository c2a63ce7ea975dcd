"""
The crawl frontier: URLs waiting to be fetched, in breadth-first order.
"""
from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, Optional, Set


class Admission(Enum):
    """Outcome of Frontier.enqueue."""
    ADMITTED = "admitted"
    DUPLICATE = "duplicate"
    TOO_DEEP = "too_deep"
    OVER_BUDGET = "over_budget"
    CLOSED = "closed"

    @property
    def known(self) -> bool:
        """True if the URL is (or was) part of this run."""
        return self in (Admission.ADMITTED, Admission.DUPLICATE)


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    url: str
    depth: int
    expand: bool = True


class Frontier:
    """
    Queue of (url, depth) pairs with a visited-set guard.

    Entries live in one FIFO bucket per depth and are always taken from the
    shallowest non-empty bucket. Each URL is admitted at most once; the
    total of queued, in-flight and visited URLs never exceeds max_urls.
    """

    def __init__(self, max_depth: int, max_urls: int) -> None:
        self.max_depth = max_depth
        self.max_urls = max_urls

        self._cond = threading.Condition()
        self._buckets: Dict[int, Deque[str]] = {}
        self._queued: Dict[str, FrontierEntry] = {}
        self._in_flight: Set[str] = set()
        self._visited: Set[str] = set()
        self._closed = False
        self._budget_hit = False

    def enqueue(self, url: str, depth: int, expand: bool = True) -> Admission:
        with self._cond:
            if url in self._visited or url in self._in_flight:
                return Admission.DUPLICATE

            queued = self._queued.get(url)
            if queued is not None:
                # Found again on a shorter path: move it to the shallower bucket
                if depth < queued.depth:
                    self._queued[url] = FrontierEntry(url, depth, queued.expand or expand)
                    self._buckets.setdefault(depth, deque()).append(url)
                    self._cond.notify()
                return Admission.DUPLICATE

            if self._closed:
                return Admission.CLOSED
            if depth > self.max_depth:
                return Admission.TOO_DEEP
            if self._size() >= self.max_urls:
                self._budget_hit = True
                return Admission.OVER_BUDGET

            self._queued[url] = FrontierEntry(url, depth, expand)
            self._buckets.setdefault(depth, deque()).append(url)
            self._cond.notify()
            return Admission.ADMITTED

    def dequeue(
        self,
        timeout: Optional[float] = None,
        admit: Optional[Callable[[], bool]] = None,
    ) -> Optional[FrontierEntry]:
        """
        Claim the next entry and mark it in flight.

        Waits up to timeout for work to arrive. Returns None on timeout, when
        the frontier is exhausted or closed, or when admit() says no.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                if self._closed or (admit is not None and not admit()):
                    return None
                entry = self._pop()
                if entry is not None:
                    self._in_flight.add(entry.url)
                    return entry
                if not self._in_flight:
                    return None
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return None
                self._cond.wait(remaining)

    def _pop(self) -> Optional[FrontierEntry]:
        while self._buckets:
            depth = min(self._buckets)
            bucket = self._buckets[depth]
            while bucket:
                url = bucket.popleft()
                entry = self._queued.get(url)
                # Skip stale copies left behind by a depth promotion
                if entry is not None and entry.depth == depth:
                    del self._queued[url]
                    return entry
            del self._buckets[depth]
        return None

    def complete(self, url: str) -> None:
        """Mark an in-flight URL as visited."""
        with self._cond:
            self._in_flight.discard(url)
            self._visited.add(url)
            self._cond.notify_all()

    def close(self) -> None:
        """Reject further enqueues and release any waiting dequeue."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def _size(self) -> int:
        return len(self._queued) + len(self._in_flight) + len(self._visited)

    @property
    def exhausted(self) -> bool:
        with self._cond:
            return not self._queued and not self._in_flight

    @property
    def budget_hit(self) -> bool:
        with self._cond:
            return self._budget_hit

    @property
    def queued_count(self) -> int:
        with self._cond:
            return len(self._queued)

    @property
    def visited_count(self) -> int:
        with self._cond:
            return len(self._visited)
