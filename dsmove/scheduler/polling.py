from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from ..core.exceptions import MigrationCancelled

# seconds; smaller caller values are raised to this
MIN_POLL_INTERVAL = 10


def clamp_interval(seconds: float) -> int:
    return max(MIN_POLL_INTERVAL, int(seconds))


class CancelToken:
    """
    Cooperative cancellation for the scheduler's wait points.

    Fires when cancel() is called or when `deadline` seconds have elapsed since
    construction. Without a deadline it only fires on an explicit cancel().
    """

    def __init__(
        self,
        deadline: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._expires_at = clock() + float(deadline) if deadline is not None else None
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._expires_at is not None and self._clock() >= self._expires_at

    def raise_if_cancelled(self, what: str) -> None:
        if self.cancelled:
            raise MigrationCancelled(code=3, msg=f"Cancelled while {what}")


def poll(
    predicate: Callable[[], bool],
    interval: float,
    *,
    max_attempts: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    cancel: Optional[CancelToken] = None,
    what: str = "polling",
) -> bool:
    """
    Evaluate `predicate` until it returns True, sleeping `interval` seconds between tries.

    Returns True once the predicate holds, False when `max_attempts` evaluations were
    spent without success (None means no limit). Raises MigrationCancelled if the
    cancel token fires before the next sleep. Exceptions from the predicate propagate.
    """
    attempts = 0
    while True:
        attempts += 1
        if predicate():
            return True
        if max_attempts is not None and attempts >= max_attempts:
            return False
        if cancel is not None:
            cancel.raise_if_cancelled(what)
        sleep(interval)
