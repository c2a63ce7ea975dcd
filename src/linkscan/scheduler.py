"""
Worker pool that drives fetch-and-extract cycles against the frontier.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from linkscan.config import ScanConfig
from linkscan.control import RunControl, RunState, TerminationReason
from linkscan.errors import InvalidUrl
from linkscan.extractor import extract_links
from linkscan.fetcher import ErrorKind, FetchOutcome, Fetcher
from linkscan.frontier import Admission, Frontier, FrontierEntry
from linkscan.results import ResultAggregator, ScanResult
from linkscan.urls import Origin, UrlFilter, is_same_origin, normalize_url

log = logging.getLogger(__name__)

# How long an idle worker waits before re-checking run state and deadline
POLL_INTERVAL = 0.05


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    current_url: Optional[str]
    urls_scanned: int
    total_urls_known: int
    broken_count: int
    error_count: int
    state: RunState


ProgressCallback = Callable[[ProgressSnapshot, ScanResult], None]


class Scheduler:
    """
    Runs config.concurrency worker threads until the frontier is exhausted,
    the wall-clock budget runs out or a stop is requested.

    Stops are cooperative: a fetch already in progress always finishes and
    its outcome is recorded.
    """

    def __init__(
        self,
        frontier: Frontier,
        aggregator: ResultAggregator,
        fetcher: Fetcher,
        control: RunControl,
        config: ScanConfig,
        origin: Origin,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.frontier = frontier
        self.aggregator = aggregator
        self.fetcher = fetcher
        self.control = control
        self.config = config
        self.origin = origin
        self.on_progress = on_progress

        self._url_filter = UrlFilter(config.regex_exclusions, config.wildcard_exclusions)
        self._deadline: Optional[float] = None
        self._lock = threading.Lock()
        self._current_url: Optional[str] = None

    def run(self) -> TerminationReason:
        """Start the workers, wait for all of them and return why the run ended."""
        if self.config.total_timeout_s is not None:
            self._deadline = time.monotonic() + self.config.total_timeout_s

        workers: List[threading.Thread] = [
            threading.Thread(target=self._worker, name=f"linkscan-worker-{i}", daemon=True)
            for i in range(self.config.concurrency)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        reason = self.control.stop_reason
        if reason is None:
            reason = TerminationReason.BUDGET_EXCEEDED if self.frontier.budget_hit else TerminationReason.COMPLETED
        return reason

    def request_stop(self, reason: TerminationReason = TerminationReason.CANCELLED) -> bool:
        changed = self.control.stop(reason)
        self.frontier.close()
        return changed

    def progress(self) -> ProgressSnapshot:
        checked, known, broken, errors = self.aggregator.counts()
        with self._lock:
            current_url = self._current_url
        return ProgressSnapshot(
            current_url=current_url,
            urls_scanned=checked,
            total_urls_known=known,
            broken_count=broken,
            error_count=errors,
            state=self.control.state,
        )

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def _worker(self) -> None:
        while True:
            if self._deadline_passed() and self.request_stop(TerminationReason.TIMED_OUT):
                log.info("Total timeout of %sms reached", self.config.total_timeout_ms)

            state = self.control.checkpoint(POLL_INTERVAL)
            if state in (RunState.STOPPING, RunState.DONE):
                break
            if state is RunState.PAUSED:
                continue

            entry = self.frontier.dequeue(timeout=POLL_INTERVAL, admit=self.control.is_running)
            if entry is None:
                if self.frontier.exhausted:
                    break
                continue

            try:
                self._process(entry)
            except Exception as e:
                log.exception("Unexpected failure processing %s", entry.url)
                self.aggregator.record_outcome(
                    entry.url,
                    FetchOutcome.failure(entry.url, ErrorKind.OTHER, f"{type(e).__name__}: {e}"),
                    entry.depth,
                )
            finally:
                self.frontier.complete(entry.url)

    def _process(self, entry: FrontierEntry) -> None:
        with self._lock:
            self._current_url = entry.url

        log.debug("Fetching [depth %d] %s", entry.depth, entry.url)
        outcome = self.fetcher.fetch(entry.url)
        result = self.aggregator.record_outcome(entry.url, outcome, entry.depth)

        new_links = 0
        if entry.expand and outcome.is_html and entry.depth < self.config.max_depth:
            new_links = self._discover(entry, outcome)

        log.debug(
            "%s %s (+%d links)",
            outcome.status_code if outcome.status_code is not None else "ERR",
            entry.url,
            new_links,
        )
        self._report(result)

    def _discover(self, entry: FrontierEntry, outcome: FetchOutcome) -> int:
        """Queue and record every link on the page. Returns the number of new URLs."""
        base = outcome.final_url or entry.url
        child_depth = entry.depth + 1
        new_links = 0

        for href in extract_links(outcome.body or "", base, self.config.exclude_selectors):
            try:
                target = normalize_url(href, base)
            except InvalidUrl as e:
                log.debug("Skipping link on %s: %s", entry.url, e)
                continue
            if target is None:
                continue
            if self._url_filter and self._url_filter.excludes(target):
                continue

            internal = is_same_origin(target, self.origin, self.config.include_subdomains)
            if not internal and not self.config.check_external:
                continue

            # Cross-origin links are checked but not crawled
            expand = internal or not self.config.same_origin_only
            admission = self.frontier.enqueue(target, child_depth, expand)
            if admission.known:
                self.aggregator.record_discovery(target, entry.url, child_depth)
            if admission is Admission.ADMITTED:
                new_links += 1

        return new_links

    def _report(self, result: ScanResult) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(self.progress(), result)
        except Exception:
            log.exception("Progress callback failed")
