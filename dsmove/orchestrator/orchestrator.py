from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional

from ..config.config_loader import Config
from ..core.exceptions import Fatal
from ..core.utils import U
from ..vmware.migrate_mode import MigrateMode


class Orchestrator:
    """
    Top-level command runner.
    Responsibilities:
    - Handle --dump-config / --dump-args introspection
    - Dispatch the subcommand to its mode class
    """

    def __init__(self, logger: logging.Logger, args: argparse.Namespace, conf: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.args = args
        self.conf = conf or {}

    def run(self) -> int:
        if getattr(self.args, "dump_config", False):
            print(U.json_dump(Config.redacted(self.conf)))
            return 0
        if getattr(self.args, "dump_args", False):
            print(U.json_dump(Config.redacted(vars(self.args))))
            return 0

        cmd = getattr(self.args, "cmd", None)
        if cmd == "migrate":
            return MigrateMode(self.logger, self.args).run()
        raise Fatal(2, f"Unknown command: {cmd}")
