"""Polling watcher that turns working-tree changes into refresh requests."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Protocol

from .availability import AvailabilityState, RetryPolicy, wait_until_available
from .models import AggregateSnapshot
from .refresh import RefreshCoordinator

logger = logging.getLogger(__name__)


class WatchedSource(Protocol):
    def is_available(self) -> bool: ...

    def fingerprint(self) -> str: ...


class ChangeWatcher:
    """
    Waits for the source to become available, refreshes once, then polls the
    source fingerprint and requests a refresh whenever it changes (and, if
    `periodic_refresh_s` is set, at least that often).
    """

    def __init__(
        self,
        coordinator: RefreshCoordinator,
        source: WatchedSource,
        *,
        interval_s: float = 2.0,
        periodic_refresh_s: float = 0.0,
        policy: RetryPolicy = RetryPolicy(),
        on_snapshot: Callable[[AggregateSnapshot], None] | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.source = source
        self.interval_s = max(0.01, float(interval_s))
        self.periodic_refresh_s = max(0.0, float(periodic_refresh_s))
        self.policy = policy
        self.on_snapshot = on_snapshot

        self.state = AvailabilityState.UNKNOWN
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_fingerprint: str | None = None
        self._last_refresh = 0.0

    def start(self) -> None:
        self._thread = threading.Thread(target=self._watch_loop, name="git-line-diffs-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("watcher thread did not exit within %.1fs (refresh in progress?)", timeout)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _set_state(self, state: AvailabilityState) -> None:
        if state != self.state:
            logger.info("source %s", state.value)
        self.state = state

    def _trigger(self, reason: str) -> None:
        self._last_refresh = time.monotonic()
        fut = self.coordinator.request_refresh(reason)
        fut.add_done_callback(self._deliver)

    def _deliver(self, fut: Future[AggregateSnapshot]) -> None:
        if fut.cancelled() or self.on_snapshot is None:
            return
        exc = fut.exception()
        if exc is not None:
            logger.error("refresh failed: %s", exc)
            return
        self.on_snapshot(fut.result())

    def poll_once(self) -> bool:
        """Check the fingerprint once; returns True if a refresh was requested."""
        try:
            fp = self.source.fingerprint()
        except Exception as e:
            logger.warning("could not read working-tree state: %s", e)
            return False
        if fp != self._last_fingerprint:
            first = self._last_fingerprint is None
            self._last_fingerprint = fp
            self._trigger("startup" if first else "working tree changed")
            return True
        if self.periodic_refresh_s > 0 and time.monotonic() - self._last_refresh >= self.periodic_refresh_s:
            self._trigger("periodic")
            return True
        return False

    def _watch_loop(self) -> None:
        if not wait_until_available(self.source.is_available, self.policy, self._stop_event, on_state=self._set_state):
            logger.warning("watcher stopping: source never became available")
            self._stop_event.set()
            return

        while not self._stop_event.is_set():
            self.poll_once()
            if self._stop_event.wait(self.interval_s):
                break
