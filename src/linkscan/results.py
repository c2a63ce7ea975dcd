"""
Per-URL scan results and the aggregator that owns them during a run.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

if TYPE_CHECKING:
    from linkscan.fetcher import FetchOutcome


class ScanStatus(str, Enum):
    OK = "ok"
    BROKEN = "broken"
    ERROR = "error"


def classify(status_code: Optional[int]) -> ScanStatus:
    """Classify a fetch by its HTTP status code (None means unreachable)."""
    if status_code is None:
        return ScanStatus.ERROR
    if status_code >= 400:
        return ScanStatus.BROKEN
    return ScanStatus.OK


@dataclass(slots=True)
class ScanResult:
    """Result data for a single discovered URL."""
    url: str
    depth: int
    status: Optional[ScanStatus] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    content_type: Optional[str] = None
    found_on: Set[str] = field(default_factory=set)

    @property
    def checked(self) -> bool:
        return self.status is not None

    def copy(self) -> "ScanResult":
        return ScanResult(
            url=self.url,
            depth=self.depth,
            status=self.status,
            status_code=self.status_code,
            error_message=self.error_message,
            error_kind=self.error_kind,
            content_type=self.content_type,
            found_on=set(self.found_on),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output; found_on becomes a sorted list."""
        return {
            "url": self.url,
            "status": self.status.value if self.status else None,
            "status_code": self.status_code,
            "error_message": self.error_message,
            "error_kind": self.error_kind,
            "content_type": self.content_type,
            "depth": self.depth,
            "found_on": sorted(self.found_on),
        }


class ResultAggregator:
    """
    Owns the map from normalized URL to its ScanResult.

    Every method takes the internal lock, so concurrent discoveries of the
    same URL merge rather than overwrite each other. Results handed out are
    copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: Dict[str, ScanResult] = {}
        self._checked = 0
        self._broken = 0
        self._errors = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def record_discovery(self, url: str, referrer: Optional[str], depth: int) -> None:
        """Create the URL's result if absent, add the referrer, keep the minimum depth."""
        with self._lock:
            result = self._results.get(url)
            if result is None:
                result = self._results[url] = ScanResult(url=url, depth=depth)
            elif depth < result.depth:
                result.depth = depth
            if referrer is not None and referrer != url:
                result.found_on.add(referrer)

    def record_outcome(self, url: str, outcome: "FetchOutcome", depth: int = 0) -> ScanResult:
        """Store the fetch outcome and classify it. Only the first outcome counts."""
        with self._lock:
            result = self._results.get(url)
            if result is None:
                result = self._results[url] = ScanResult(url=url, depth=depth)
            if result.checked:
                return result.copy()

            result.status = classify(outcome.status_code)
            result.status_code = outcome.status_code
            result.content_type = outcome.content_type
            if result.status is ScanStatus.ERROR:
                result.error_kind = outcome.error_kind.value if outcome.error_kind else None
                result.error_message = outcome.error_message
            self._count(result.status)
            return result.copy()

    def _count(self, status: ScanStatus) -> None:
        self._checked += 1
        if status is ScanStatus.BROKEN:
            self._broken += 1
        elif status is ScanStatus.ERROR:
            self._errors += 1

    def get(self, url: str) -> Optional[ScanResult]:
        with self._lock:
            result = self._results.get(url)
            return result.copy() if result else None

    def counts(self) -> Tuple[int, int, int, int]:
        """Return (checked, known, broken, errors)."""
        with self._lock:
            return self._checked, len(self._results), self._broken, self._errors

    def results(self) -> List[ScanResult]:
        """Checked results sorted by URL."""
        with self._lock:
            return [r.copy() for _, r in sorted(self._results.items()) if r.checked]

    def unchecked(self) -> List[str]:
        """URLs that were discovered but never fetched."""
        with self._lock:
            return sorted(u for u, r in self._results.items() if not r.checked)
