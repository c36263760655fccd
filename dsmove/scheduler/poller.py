from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

from ..core.exceptions import MigrationCancelled
from .models import DispatchedJob, JobResult, TaskSnapshot, TerminalState
from .platform import MigrationPlatform
from .polling import CancelToken, clamp_interval, poll


class CompletionPoller:
    """
    Turns dispatched jobs into JobResults by reading task state from the platform.

    collect() does a single pass by default: jobs whose task is still queued/running
    are left out. wait=True keeps polling until every task is terminal (or the cancel
    token fires); include_unknown=True reports leftovers as Unknown instead of
    dropping them.
    """

    def __init__(
        self,
        platform: MigrationPlatform,
        logger: logging.Logger,
        *,
        interval: float = 60,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.platform = platform
        self.logger = logger
        self.interval = clamp_interval(interval)
        self.sleep = sleep

    def _snapshot_all(self, jobs: Sequence[DispatchedJob], seen: Dict[int, TaskSnapshot]) -> bool:
        for i, job in enumerate(jobs):
            prev = seen.get(i)
            if prev is not None and prev.state.terminal:
                continue
            seen[i] = self.platform.get_task_state(job.task_handle)
        return all(s.state.terminal for s in seen.values())

    def collect(
        self,
        jobs: Sequence[DispatchedJob],
        *,
        wait: bool = False,
        include_unknown: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> List[JobResult]:
        seen: Dict[int, TaskSnapshot] = {}
        if not jobs:
            return []

        if wait:
            try:
                poll(
                    lambda: self._snapshot_all(jobs, seen),
                    self.interval,
                    sleep=self.sleep,
                    cancel=cancel,
                    what="waiting for migrations to finish",
                )
            except MigrationCancelled as e:
                self.logger.warning(f"{e}; reporting tasks as last observed")
        else:
            self._snapshot_all(jobs, seen)

        results: List[JobResult] = []
        pending = 0
        for i, job in enumerate(jobs):
            snap = seen.get(i)
            if snap is None or not snap.state.terminal:
                pending += 1
                if include_unknown:
                    results.append(
                        JobResult(
                            subject_id=job.subject_id,
                            terminal_state=TerminalState.UNKNOWN,
                            start_time=snap.start_time if snap else None,
                        )
                    )
                continue
            results.append(
                JobResult(
                    subject_id=job.subject_id,
                    terminal_state=TerminalState.from_task_state(snap.state),
                    start_time=snap.start_time,
                    end_time=snap.end_time,
                )
            )

        if pending:
            self.logger.info(
                f"{pending} migration(s) still running at collection time"
                + (" (reported as Unknown)" if include_unknown else " (omitted)")
            )
        return results
