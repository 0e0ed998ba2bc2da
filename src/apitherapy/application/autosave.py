"""
Debounced autosave indicator.

Each save raises the "saving" indicator immediately; a settle task lowers it
and stamps ``last_saved_at`` after a fixed delay. A new save cancels the
pending settle task before scheduling its own, and a generation counter
guards against a cancelled task that already started running.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

from ..core.utils.datetime_utils import get_current_timestamp

logger = logging.getLogger(__name__)


class ScheduledTask(ABC):
    """Handle of a callback scheduled for later execution."""

    @abstractmethod
    def cancel(self) -> None:
        pass


class Scheduler(ABC):
    """Schedules callbacks after a delay."""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        pass


class _TimerTask(ScheduledTask):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon ``threading.Timer`` instances."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return _TimerTask(timer)


class AutosaveIndicator:
    """Tracks the visible saving state and the last successful save time."""

    def __init__(
        self,
        scheduler: Scheduler,
        settle_seconds: float = 0.4,
        clock: Callable[[], datetime] = get_current_timestamp,
    ) -> None:
        self._scheduler = scheduler
        self._settle_seconds = settle_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._generation = 0
        self._pending: Optional[ScheduledTask] = None
        self.is_saving = False
        self.last_saved_at: Optional[datetime] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def begin(self) -> None:
        """Raise the indicator and restart the settle delay."""
        with self._lock:
            self._cancel_pending_locked()
            self.is_saving = True
            generation = self._generation
        task = self._scheduler.call_later(self._settle_seconds, lambda: self._settle(generation))
        with self._lock:
            if generation != self._generation:
                # superseded while scheduling
                task.cancel()
            elif self.is_saving:
                self._pending = task

    def cancel(self) -> None:
        """Drop any pending settle transition and lower the indicator."""
        with self._lock:
            self._cancel_pending_locked()
            self.is_saving = False

    def _cancel_pending_locked(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _settle(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Ignoring stale autosave settle (generation %s)", generation)
                return
            self._pending = None
            self.is_saving = False
            self.last_saved_at = self._clock()
