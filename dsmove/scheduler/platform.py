from __future__ import annotations

from typing import Any, FrozenSet, Protocol

from .models import StorageKind, TargetRef, TaskSnapshot

# Task names and description ids vCenter uses for storage vMotion work.
MIGRATION_TASK_KINDS: FrozenSet[str] = frozenset(
    {
        "RelocateVM_Task",
        "ApplyStorageDrsRecommendation_Task",
        "VirtualMachine.relocate",
        "StorageResourceManager.applyRecommendation",
    }
)


class MigrationPlatform(Protocol):
    """
    What the scheduler needs from the virtualization platform.

    Implementations raise SubmissionError from submit_relocate() and
    RegistryQueryError from count_active_tasks()/get_task_state().
    """

    def count_active_tasks(self, kinds: FrozenSet[str]) -> int:
        ...

    def submit_relocate(self, subject_id: str, destination: TargetRef, disk_format: str) -> Any:
        ...

    def get_task_state(self, handle: Any) -> TaskSnapshot:
        ...

    def get_storage_kind(self, target: TargetRef) -> StorageKind:
        ...
