from __future__ import annotations

import dataclasses
import enum
import logging
import threading
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


class AvailabilityState(enum.Enum):
    UNKNOWN = "unknown"
    UNAVAILABLE = "unavailable"
    AVAILABLE = "available"


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    initial_delay_s: float = 0.5
    max_delay_s: float = 30.0
    backoff: float = 2.0
    max_attempts: int | None = None  # None = retry until stopped

    def delays(self) -> Iterator[float]:
        delay = max(0.0, self.initial_delay_s)
        attempt = 0
        while self.max_attempts is None or attempt < self.max_attempts - 1:
            yield delay
            attempt += 1
            delay = min(self.max_delay_s, delay * max(1.0, self.backoff))


def wait_until_available(
    probe: Callable[[], bool],
    policy: RetryPolicy = RetryPolicy(),
    stop_event: threading.Event | None = None,
    on_state: Callable[[AvailabilityState], None] | None = None,
) -> bool:
    """
    Call `probe` until it reports the source as available.

    Sleeps on `stop_event` between attempts (so a stop interrupts the wait)
    with exponential backoff capped at `policy.max_delay_s`. Returns False when
    stopped or when `policy.max_attempts` probes all failed.
    """
    stop = stop_event or threading.Event()
    delays = policy.delays()
    attempt = 0
    while not stop.is_set():
        attempt += 1
        try:
            ok = bool(probe())
        except Exception:
            logger.exception("availability probe raised")
            ok = False
        if ok:
            if on_state is not None:
                on_state(AvailabilityState.AVAILABLE)
            return True
        if on_state is not None:
            on_state(AvailabilityState.UNAVAILABLE)
        delay = next(delays, None)
        if delay is None:
            logger.warning("source still unavailable after %d attempts", attempt)
            return False
        logger.debug("source unavailable (attempt %d); retrying in %.2fs", attempt, delay)
        if stop.wait(delay):
            break
    return False
