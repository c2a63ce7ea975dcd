"""
Run state machine shared between the scan handle and its workers.

    RUNNING -> PAUSED -> RUNNING
    RUNNING | PAUSED -> STOPPING -> DONE
    RUNNING -> DONE

Workers consult the state only between work units.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Optional

log = logging.getLogger(__name__)


class RunState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    STOPPING = "stopping"
    DONE = "done"


class TerminationReason(str, Enum):
    COMPLETED = "completed"
    BUDGET_EXCEEDED = "budget_exceeded"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class RunControl:
    """Pause/resume/stop flags with idempotent transitions."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._state = RunState.RUNNING
        self._stop_reason: Optional[TerminationReason] = None

    @property
    def state(self) -> RunState:
        with self._cond:
            return self._state

    @property
    def stop_reason(self) -> Optional[TerminationReason]:
        with self._cond:
            return self._stop_reason

    def is_running(self) -> bool:
        with self._cond:
            return self._state is RunState.RUNNING

    def pause(self) -> bool:
        """Request a pause. Returns True if the state changed."""
        with self._cond:
            if self._state is not RunState.RUNNING:
                return False
            self._state = RunState.PAUSED
            log.info("Scan paused")
            return True

    def resume(self) -> bool:
        with self._cond:
            if self._state is not RunState.PAUSED:
                return False
            self._state = RunState.RUNNING
            self._cond.notify_all()
            log.info("Scan resumed")
            return True

    def stop(self, reason: TerminationReason = TerminationReason.CANCELLED) -> bool:
        """Request a stop. The first reason recorded wins."""
        with self._cond:
            if self._state not in (RunState.RUNNING, RunState.PAUSED):
                return False
            self._state = RunState.STOPPING
            self._stop_reason = reason
            self._cond.notify_all()
            log.info("Scan stopping (%s)", reason.value)
            return True

    def finish(self) -> None:
        with self._cond:
            self._state = RunState.DONE
            self._cond.notify_all()

    def checkpoint(self, timeout: Optional[float] = None) -> RunState:
        """
        Block while paused, for at most timeout seconds.

        Returns the state afterwards; callers proceed only on RUNNING.
        """
        with self._cond:
            if self._state is RunState.PAUSED:
                self._cond.wait_for(lambda: self._state is not RunState.PAUSED, timeout)
            return self._state

    def wait_done(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._state is RunState.DONE, timeout)
