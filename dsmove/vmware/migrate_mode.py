# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..core.cred import resolve_vsphere_creds
from ..core.exceptions import Fatal, VMwareError
from ..core.utils import U
from ..report.results_writer import print_table, results_to_dicts, write_csv
from ..scheduler.models import JobResult, TerminalState
from ..scheduler.polling import CancelToken
from ..scheduler.scheduler import MigrationScheduler
from .migration_platform import VsphereMigrationPlatform
from .vmware_client import VMwareClient


class MigrateMode:
    """CLI entry for `migrate`: connect, resolve target, run the scheduler, render results."""

    def __init__(
        self,
        logger: logging.Logger,
        args: argparse.Namespace,
        *,
        client_factory: Callable[..., VMwareClient] = VMwareClient,
        platform_factory: Callable[..., VsphereMigrationPlatform] = VsphereMigrationPlatform,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = logger
        self.args = args
        self.client_factory = client_factory
        self.platform_factory = platform_factory
        self.sleep = sleep

    def _subjects(self) -> List[str]:
        names: List[str] = [str(n).strip() for n in (getattr(self.args, "vms", None) or []) if str(n).strip()]
        vm_file = getattr(self.args, "vm_file", None)
        if vm_file:
            names.extend(U.read_name_list(self.logger, vm_file))
        if not names:
            raise Fatal(2, "migrate: no VMs given (use --vm, --vm-file or 'vms:' in config)")
        return names

    def _client(self) -> VMwareClient:
        creds = resolve_vsphere_creds(vars(self.args))
        if not creds.complete():
            raise Fatal(2, "migrate: --vcenter, --vc-user, and --vc-password (or --vc-password-env) are required")
        return self.client_factory(
            self.logger,
            creds.host,
            creds.user,
            creds.password,
            port=getattr(self.args, "vc_port", 443),
            insecure=getattr(self.args, "vc_insecure", False),
        )

    @staticmethod
    def exit_code(subjects: Sequence[str], results: Sequence[JobResult]) -> int:
        ok = sum(1 for r in results if r.terminal_state is TerminalState.SUCCEEDED)
        return 0 if ok == len(subjects) else 1

    def _emit(self, results: Sequence[JobResult]) -> None:
        if getattr(self.args, "json", False):
            print(json.dumps(results_to_dicts(results), indent=2))
        else:
            print_table(results)
        csv_path: Optional[str] = getattr(self.args, "csv", None)
        if csv_path:
            out = write_csv(results, Path(csv_path))
            self.logger.info(f"Results written to {out}")

    def run(self) -> int:
        subjects = self._subjects()
        client = self._client()
        try:
            client.connect()
        except VMwareError as e:
            raise Fatal(2, f"migrate: Connection failed: {e}")

        try:
            platform = self.platform_factory(client, self.logger)
            target = platform.resolve_target(self.args.destination, pooled=bool(getattr(self.args, "pooled", False)))
            scheduler = MigrationScheduler(
                platform,
                self.logger,
                max_concurrent=getattr(self.args, "max_concurrent", 2),
                poll_interval=getattr(self.args, "poll_interval", 60),
                wait_for_completion=bool(getattr(self.args, "wait_all", False)),
                report_unknown=bool(getattr(self.args, "report_unknown", False)),
                sleep=self.sleep,
            )

            if getattr(self.args, "dry_run", False):
                mode = scheduler.resolve_provisioning_mode(target)
                U.banner(self.logger, f"Dry run: {len(subjects)} VM(s) -> {target.name} ({mode.value})")
                for n, name in enumerate(subjects, 1):
                    self.logger.info(f"  {n:>3}. {name}")
                return 0

            deadline = getattr(self.args, "deadline", None)
            cancel = CancelToken(deadline) if deadline is not None else None
            results = scheduler.run(subjects, target, cancel=cancel)
            if scheduler.cancelled:
                self.logger.warning("Deadline reached before every VM was submitted")

            self._emit(results)
            for f in scheduler.failures:
                self.logger.error(f"Not migrated: {f.request.subject_id}: {f.error}")
            return self.exit_code(subjects, results)
        finally:
            client.disconnect()
