from __future__ import annotations

import logging
import time
from typing import Callable, FrozenSet, Optional

from .platform import MIGRATION_TASK_KINDS, MigrationPlatform
from .polling import CancelToken, clamp_interval, poll


class ConcurrencyGate:
    """
    Admission check: blocks until fewer than `limit` migration tasks are queued or
    running on the platform. Pure read of the task registry plus sleeps.
    """

    def __init__(
        self,
        platform: MigrationPlatform,
        logger: logging.Logger,
        *,
        interval: float = 60,
        sleep: Callable[[float], None] = time.sleep,
        kinds: FrozenSet[str] = MIGRATION_TASK_KINDS,
    ):
        self.platform = platform
        self.logger = logger
        self.interval = clamp_interval(interval)
        self.sleep = sleep
        self.kinds = kinds
        self.last_observed: Optional[int] = None

    def _has_capacity(self, limit: int) -> bool:
        count = int(self.platform.count_active_tasks(self.kinds))
        self.last_observed = count
        if count < limit:
            return True
        self.logger.info(
            f"{count} migration task(s) in flight (limit {limit}); checking again in {self.interval}s"
        )
        return False

    def await_capacity(self, limit: int, cancel: Optional[CancelToken] = None) -> None:
        poll(
            lambda: self._has_capacity(limit),
            self.interval,
            sleep=self.sleep,
            cancel=cancel,
            what="waiting for migration capacity",
        )
        self.logger.debug(f"Capacity available: {self.last_observed} in flight, limit {limit}")
