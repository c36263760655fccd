from __future__ import annotations

import datetime as _dt
import logging
from typing import Callable

from ..core.exceptions import SubmissionError, wrap_submission
from ..core.utils import U
from .models import DispatchedJob, MigrationRequest, ProvisioningMode, SubmitOutcome
from .platform import MigrationPlatform


class JobSubmitter:
    def __init__(
        self,
        platform: MigrationPlatform,
        logger: logging.Logger,
        *,
        clock: Callable[[], _dt.datetime] = U.now,
    ):
        self.platform = platform
        self.logger = logger
        self.clock = clock

    def submit(self, request: MigrationRequest, mode: ProvisioningMode) -> SubmitOutcome:
        """
        Fire one asynchronous relocate. Failures are logged and returned in the
        outcome, never raised; the caller decides what to do with them.
        """
        dest = request.destination
        try:
            handle = self.platform.submit_relocate(request.subject_id, dest, mode.disk_format)
        except SubmissionError as e:
            e.with_context(vm=request.subject_id, destination=dest.name)
            self.logger.warning(f"Submission failed for {request.subject_id}: {e}")
            return SubmitOutcome(request=request, error=e)
        except Exception as e:
            err = wrap_submission(
                f"Relocate of {request.subject_id} to {dest.name} failed: {e}",
                e,
                vm=request.subject_id,
                destination=dest.name,
            )
            self.logger.warning(f"Submission failed for {request.subject_id}: {err}")
            return SubmitOutcome(request=request, error=err)

        job = DispatchedJob(request=request, task_handle=handle, submitted_at=self.clock())
        self.logger.info(
            f"Submitted migration of {request.subject_id} -> {dest.name} ({mode.value})"
        )
        return SubmitOutcome(request=request, job=job)
