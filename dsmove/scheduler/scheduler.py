from __future__ import annotations

import datetime as _dt
import logging
import time
from typing import Callable, List, Optional, Sequence

from ..core.exceptions import Fatal, MigrationCancelled
from ..core.utils import U
from .gate import ConcurrencyGate
from .models import (
    DispatchedJob,
    JobResult,
    MigrationRequest,
    ProvisioningMode,
    SubmitOutcome,
    TargetRef,
)
from .platform import MigrationPlatform
from .poller import CompletionPoller
from .polling import CancelToken, clamp_interval
from .submitter import JobSubmitter


class MigrationScheduler:
    """
    Bounded storage-migration driver.

    For every subject, in input order: wait at the concurrency gate, submit one
    relocate, then sleep the pacing interval. When the list is exhausted the
    completion poller runs once over everything that was dispatched.

    The limit is advisory. Other actors may start migrations between the gate check
    and the submission; the scheduler only reacts on its next check.
    """

    def __init__(
        self,
        platform: MigrationPlatform,
        logger: logging.Logger,
        *,
        max_concurrent: int = 2,
        poll_interval: float = 60,
        wait_for_completion: bool = False,
        report_unknown: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], _dt.datetime] = U.now,
    ):
        if int(max_concurrent) < 1:
            raise Fatal(2, f"max_concurrent must be >= 1 (got {max_concurrent})")
        self.platform = platform
        self.logger = logger
        self.max_concurrent = int(max_concurrent)
        self.poll_interval = clamp_interval(poll_interval)
        if self.poll_interval != poll_interval:
            logger.warning(f"Poll interval {poll_interval}s raised to minimum {self.poll_interval}s")
        self.wait_for_completion = wait_for_completion
        self.report_unknown = report_unknown
        self.sleep = sleep

        self.gate = ConcurrencyGate(platform, logger, interval=self.poll_interval, sleep=sleep)
        self.submitter = JobSubmitter(platform, logger, clock=clock)
        self.poller = CompletionPoller(platform, logger, interval=self.poll_interval, sleep=sleep)

        self.mode: Optional[ProvisioningMode] = None
        self.dispatched: List[DispatchedJob] = []
        self.failures: List[SubmitOutcome] = []
        self.cancelled = False

    def resolve_provisioning_mode(self, destination: TargetRef) -> ProvisioningMode:
        kind = self.platform.get_storage_kind(destination)
        mode = ProvisioningMode.for_storage_kind(kind)
        self.logger.info(f"Destination {destination.name}: storage {kind.value}, provisioning {mode.value}")
        return mode

    @staticmethod
    def build_requests(subjects: Sequence[str], destination: TargetRef) -> List[MigrationRequest]:
        return [MigrationRequest(subject_id=s, destination=destination) for s in subjects]

    def run(
        self,
        subjects: Sequence[str],
        destination: TargetRef,
        cancel: Optional[CancelToken] = None,
    ) -> List[JobResult]:
        self.dispatched = []
        self.failures = []
        self.cancelled = False
        self.mode = self.resolve_provisioning_mode(destination)

        requests = self.build_requests(subjects, destination)
        U.banner(self.logger, f"Migrating {len(requests)} VM(s) to {destination.name} (max {self.max_concurrent} in flight)")

        for n, req in enumerate(requests, 1):
            try:
                # the gate only looks at the token when it has to wait
                if cancel is not None:
                    cancel.raise_if_cancelled("dispatching migrations")
                self.gate.await_capacity(self.max_concurrent, cancel=cancel)
            except MigrationCancelled as e:
                self.cancelled = True
                self.logger.warning(f"{e}; {len(requests) - n + 1} VM(s) not submitted")
                break

            outcome = self.submitter.submit(req, self.mode)
            if outcome.ok:
                self.dispatched.append(outcome.job)  # type: ignore[arg-type]
            else:
                self.failures.append(outcome)
            self.logger.debug(f"[{n}/{len(requests)}] pacing {self.poll_interval}s")
            self.sleep(self.poll_interval)

        self.logger.info(
            f"Dispatch finished: {len(self.dispatched)} submitted, {len(self.failures)} failed to submit"
        )
        return self.poller.collect(
            self.dispatched,
            wait=self.wait_for_completion,
            include_unknown=self.report_unknown,
            cancel=cancel,
        )
