# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Any, FrozenSet, List

from pyVmomi import vim, vmodl

from ..core.exceptions import Fatal, SubmissionError, wrap_registry, wrap_submission
from ..core.logger import TRACE
from ..scheduler.models import StorageKind, TargetRef, TaskSnapshot, TaskState
from ..scheduler.platform import MIGRATION_TASK_KINDS
from .vmware_client import VMwareClient

_ACTIVE_STATES = ("queued", "running")

_TASK_STATE = {
    "queued": TaskState.QUEUED,
    "running": TaskState.RUNNING,
    "success": TaskState.SUCCEEDED,
    "error": TaskState.FAILED,
}

_STORAGE_KIND = {
    "NFS": StorageKind.NFS,
    "NFS41": StorageKind.NFS,
    "VMFS": StorageKind.BLOCK,
    "VSAN": StorageKind.BLOCK,
    "VVOL": StorageKind.BLOCK,
}


def _fault_msg(e: BaseException) -> str:
    return str(getattr(e, "msg", None) or e)


class VsphereMigrationPlatform:
    """
    MigrationPlatform backed by a live vCenter session.

    Datastore targets are moved with RelocateVM_Task; datastore clusters go through
    Storage DRS (RecommendDatastores, then ApplyStorageDrsRecommendation_Task on the
    first recommendation).
    """

    def __init__(self, client: VMwareClient, logger: logging.Logger):
        self.client = client
        self.logger = logger

    # ---------------------------
    # Target resolution
    # ---------------------------

    def resolve_target(self, name: str, pooled: bool = False) -> TargetRef:
        if pooled:
            obj = self.client.get_storage_pod_by_name(name)
            what = "Datastore cluster"
        else:
            obj = self.client.get_datastore_by_name(name)
            what = "Datastore"
        if obj is None:
            raise Fatal(2, f"{what} not found in inventory: {name}")
        return TargetRef(name=name, pooled=pooled, obj=obj)

    def get_storage_kind(self, target: TargetRef) -> StorageKind:
        ds = target.obj
        if target.pooled:
            children = list(getattr(target.obj, "childEntity", None) or [])
            if not children:
                self.logger.warning(f"Datastore cluster {target.name} has no member datastores")
                return StorageKind.OTHER
            ds = children[0]
        summary_type = str(getattr(getattr(ds, "summary", None), "type", "") or "").upper()
        return _STORAGE_KIND.get(summary_type, StorageKind.OTHER)

    # ---------------------------
    # Task registry
    # ---------------------------

    def count_active_tasks(self, kinds: FrozenSet[str] = MIGRATION_TASK_KINDS) -> int:
        try:
            n = 0
            for task in self.client.recent_tasks():
                info = task.info
                if str(info.state) not in _ACTIVE_STATES:
                    continue
                name = str(getattr(info, "name", "") or "")
                description_id = str(getattr(info, "descriptionId", "") or "")
                if name in kinds or description_id in kinds:
                    n += 1
                    self.logger.log(TRACE, f"in flight: {name or description_id} ({info.state})")
            return n
        except Exception as e:
            raise wrap_registry(f"Failed to count active migration tasks: {e}", e)

    def get_task_state(self, handle: Any) -> TaskSnapshot:
        try:
            info = handle.info
            state = _TASK_STATE.get(str(info.state))
            if state is None:
                raise ValueError(f"unexpected task state {info.state!r}")
            self.logger.log(TRACE, f"task {getattr(info, 'key', '?')}: {info.state}")
            return TaskSnapshot(
                state=state,
                start_time=getattr(info, "startTime", None),
                end_time=getattr(info, "completeTime", None),
            )
        except Exception as e:
            raise wrap_registry(f"Failed to read task state: {e}", e)

    # ---------------------------
    # Relocate
    # ---------------------------

    @staticmethod
    def _disk_locators(vm: Any, datastore: Any, thin: bool) -> List[Any]:
        locators = []
        for dev in vm.config.hardware.device:
            if not isinstance(dev, vim.vm.device.VirtualDisk):
                continue
            backing = vim.vm.device.VirtualDisk.FlatVer2BackingInfo(
                diskMode="persistent",
                thinProvisioned=thin,
                eagerlyScrub=False,
            )
            locators.append(
                vim.vm.RelocateSpec.DiskLocator(diskId=dev.key, datastore=datastore, diskBackingInfo=backing)
            )
        return locators

    def _submit_to_datastore(self, vm: Any, destination: TargetRef, thin: bool) -> Any:
        spec = vim.vm.RelocateSpec(
            datastore=destination.obj,
            disk=self._disk_locators(vm, destination.obj, thin),
        )
        return vm.RelocateVM_Task(spec=spec)

    def _submit_to_pod(self, subject_id: str, vm: Any, destination: TargetRef, thin: bool) -> Any:
        transform = vim.vm.RelocateSpec.Transformation.sparse if thin else vim.vm.RelocateSpec.Transformation.flat
        placement = vim.storageDrs.StoragePlacementSpec(
            type="relocate",
            priority=vim.VirtualMachine.MovePriority.defaultPriority,
            vm=vm,
            podSelectionSpec=vim.storageDrs.PodSelectionSpec(storagePod=destination.obj),
            relocateSpec=vim.vm.RelocateSpec(transform=transform),
        )
        srm = self.client.storage_resource_manager()
        result = srm.RecommendDatastores(storageSpec=placement)
        recs = list(getattr(result, "recommendations", None) or [])
        if not recs:
            raise wrap_submission(f"Storage DRS returned no placement for {subject_id} in {destination.name}")
        return srm.ApplyStorageDrsRecommendation_Task(key=[recs[0].key])

    def submit_relocate(self, subject_id: str, destination: TargetRef, disk_format: str) -> Any:
        vm = self.client.get_vm_by_name(subject_id)
        if vm is None:
            raise wrap_submission(f"VM not found: {subject_id}")
        thin = disk_format == "thin"
        try:
            if destination.pooled:
                return self._submit_to_pod(subject_id, vm, destination, thin)
            return self._submit_to_datastore(vm, destination, thin)
        except SubmissionError:
            raise
        except vmodl.MethodFault as e:
            raise wrap_submission(f"vCenter rejected relocate of {subject_id}: {_fault_msg(e)}", e)
        except Exception as e:
            raise wrap_submission(f"Relocate of {subject_id} failed: {e}", e)
