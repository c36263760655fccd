from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..core.exceptions import SubmissionError


class StorageKind(Enum):
    NFS = "NFS"
    BLOCK = "Block"
    OTHER = "Other"


class ProvisioningMode(Enum):
    THIN = "Thin"
    THICK = "Thick"

    @classmethod
    def for_storage_kind(cls, kind: StorageKind) -> "ProvisioningMode":
        return cls.THIN if kind is StorageKind.NFS else cls.THICK

    @property
    def disk_format(self) -> str:
        return self.value.lower()


class TaskState(Enum):
    QUEUED = "Queued"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


class TerminalState(Enum):
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def from_task_state(cls, state: TaskState) -> "TerminalState":
        if state is TaskState.SUCCEEDED:
            return cls.SUCCEEDED
        if state is TaskState.FAILED:
            return cls.FAILED
        return cls.UNKNOWN


@dataclass(frozen=True)
class TargetRef:
    """Destination datastore (pooled=False) or datastore cluster (pooled=True)."""
    name: str
    pooled: bool = False
    obj: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class MigrationRequest:
    subject_id: str
    destination: TargetRef


@dataclass(frozen=True)
class TaskSnapshot:
    state: TaskState
    start_time: Optional[_dt.datetime] = None
    end_time: Optional[_dt.datetime] = None


@dataclass(frozen=True)
class DispatchedJob:
    request: MigrationRequest
    task_handle: Any = field(compare=False)
    submitted_at: _dt.datetime

    @property
    def subject_id(self) -> str:
        return self.request.subject_id


@dataclass(frozen=True)
class JobResult:
    subject_id: str
    terminal_state: TerminalState
    start_time: Optional[_dt.datetime] = None
    end_time: Optional[_dt.datetime] = None


@dataclass(frozen=True)
class SubmitOutcome:
    """Per-request result of a submission: exactly one of job/error is set."""
    request: MigrationRequest
    job: Optional[DispatchedJob] = None
    error: Optional[SubmissionError] = None

    @property
    def ok(self) -> bool:
        return self.job is not None
