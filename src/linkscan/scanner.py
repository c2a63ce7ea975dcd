"""
Scan entry points: the Scan run handle, scan() and recheck().
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import requests

from linkscan.config import ScanConfig
from linkscan.control import RunControl, RunState, TerminationReason
from linkscan.errors import InvalidSeedUrl, InvalidUrl
from linkscan.fetcher import Fetcher
from linkscan.frontier import Frontier
from linkscan.results import ResultAggregator, ScanResult, ScanStatus
from linkscan.scheduler import ProgressCallback, ProgressSnapshot, Scheduler
from linkscan.urls import normalize_url, origin_of

log = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def normalize_seed(seed_url: str) -> str:
    """Normalize the seed URL or raise InvalidSeedUrl."""
    try:
        normalized = normalize_url(seed_url, seed_url)
    except InvalidUrl as e:
        raise InvalidSeedUrl(f"Invalid seed URL: {seed_url}") from e
    if not normalized:
        raise InvalidSeedUrl(f"Invalid seed URL: {seed_url}")
    return normalized


@dataclass(slots=True)
class ScanReport:
    """Everything a finished (or stopped) run produced."""
    seed_url: str
    reason: TerminationReason
    results: List[ScanResult]
    unchecked: List[str] = field(default_factory=list)
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    duration_s: float = 0.0

    @property
    def failing(self) -> List[ScanResult]:
        """Broken and error results."""
        return [r for r in self.results if r.status is not ScanStatus.OK]


class Scan:
    """
    Handle for one crawl-and-validate run.

    The seed and config are validated on construction, so a Scan that
    exists can always run to completion. pause(), resume() and stop() are
    safe to call from any thread, at any time, any number of times.
    """

    def __init__(
        self,
        seed_url: str,
        config: Optional[ScanConfig] = None,
        session: Optional[requests.Session] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.config = (config or ScanConfig()).validate()
        self.seed_url = normalize_seed(seed_url)

        self.control = RunControl()
        self.frontier = Frontier(self.config.max_depth, self.config.max_urls)
        self.aggregator = ResultAggregator()
        origin = origin_of(self.seed_url)
        self.fetcher = Fetcher(self.config, session=session, site_origin=origin)
        self.scheduler = Scheduler(
            self.frontier,
            self.aggregator,
            self.fetcher,
            self.control,
            self.config,
            origin,
            on_progress=on_progress,
        )

        self._thread: Optional[threading.Thread] = None
        self._started = threading.Lock()
        self._report: Optional[ScanReport] = None

    @property
    def state(self) -> RunState:
        return self.control.state

    @property
    def report(self) -> Optional[ScanReport]:
        return self._report

    def run(self) -> ScanReport:
        """Run the scan in the calling thread and return its report."""
        if not self._started.acquire(blocking=False):
            raise RuntimeError("Scan already started")
        return self._run()

    def start(self) -> "Scan":
        """Run the scan in a background thread."""
        if not self._started.acquire(blocking=False):
            raise RuntimeError("Scan already started")
        self._thread = threading.Thread(target=self._run, name="linkscan", daemon=True)
        self._thread.start()
        return self

    def wait(self, timeout: Optional[float] = None) -> Optional[ScanReport]:
        """Wait for a started scan; returns None if still running after timeout."""
        if not self.control.wait_done(timeout):
            return None
        if self._thread is not None:
            self._thread.join()
        return self._report

    def pause(self) -> bool:
        return self.control.pause()

    def resume(self) -> bool:
        return self.control.resume()

    def stop(self) -> bool:
        return self.scheduler.request_stop(TerminationReason.CANCELLED)

    def progress(self) -> ProgressSnapshot:
        return self.scheduler.progress()

    def _run(self) -> ScanReport:
        started_at = utc_now_iso()
        t0 = datetime.now(timezone.utc)
        log.info(
            "Starting scan of %s (concurrency=%d, max_depth=%d, max_urls=%d)",
            self.seed_url,
            self.config.concurrency,
            self.config.max_depth,
            self.config.max_urls,
        )

        self.aggregator.record_discovery(self.seed_url, None, 0)
        self.frontier.enqueue(self.seed_url, 0)
        try:
            reason = self.scheduler.run()
            report = self._report = ScanReport(
                seed_url=self.seed_url,
                reason=reason,
                results=self.aggregator.results(),
                unchecked=self.aggregator.unchecked(),
                started_at=started_at,
                finished_at=utc_now_iso(),
                duration_s=(datetime.now(timezone.utc) - t0).total_seconds(),
            )
        finally:
            self.fetcher.close()
            self.control.finish()

        log.info(
            "Scan of %s finished (%s): %d checked, %d broken/error, %d unchecked",
            self.seed_url,
            reason.value,
            len(report.results),
            len(report.failing),
            len(report.unchecked),
        )
        return report


def scan(
    seed_url: str,
    config: Optional[ScanConfig] = None,
    session: Optional[requests.Session] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> List[ScanResult]:
    """
    Crawl a site from seed_url and check every link found.

    Args:
        seed_url: The URL to start crawling from.
        config: Scan settings; defaults to ScanConfig().
        session: Optional requests session to fetch with.
        on_progress: Called from worker threads after each URL is checked.

    Returns:
        One ScanResult per checked URL, sorted by URL.

    Raises:
        InvalidSeedUrl: The seed URL cannot be normalized.
        InvalidConfig: The config failed validation.
    """
    return Scan(seed_url, config, session=session, on_progress=on_progress).run().results


def recheck(
    url: str,
    config: Optional[ScanConfig] = None,
    session: Optional[requests.Session] = None,
    site_url: Optional[str] = None,
) -> ScanResult:
    """
    Check a single URL with the same fetch and classification rules as a scan.

    Credentials in config are only sent when url is on the origin of
    site_url (the scanned site). Without site_url, url is its own site.
    """
    config = (config or ScanConfig()).validate()
    normalized = normalize_seed(url)
    site = normalize_seed(site_url) if site_url else normalized

    fetcher = Fetcher(config, session=session, site_origin=origin_of(site))
    try:
        outcome = fetcher.fetch(normalized)
    finally:
        fetcher.close()

    aggregator = ResultAggregator()
    return aggregator.record_outcome(normalized, outcome)
