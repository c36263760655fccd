#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import sys

from .cli.argument_parser import parse_args_with_config
from .core.exceptions import DsMoveError, Fatal, format_exception_for_cli
from .orchestrator.orchestrator import Orchestrator


def main() -> None:
    # Phase 1: parse (Fatal can happen here)
    try:
        args, conf, logger = parse_args_with_config()
    except Fatal as e:
        # config loader already logged via U.die() once the logger exists
        if not logging.getLogger("dsmove").handlers:
            print(f"💥 ERROR    {e}", file=sys.stderr)
        raise SystemExit(getattr(e, "code", 1))
    except KeyboardInterrupt:
        print("Interrupted by user (Ctrl+C).", file=sys.stderr)
        raise SystemExit(130)

    # Phase 2: run command
    try:
        rc = Orchestrator(logger, args, conf).run()
    except DsMoveError as e:
        logger.error(format_exception_for_cli(e, verbose=getattr(args, "verbose", 0)))
        rc = e.code
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (Ctrl+C).")
        rc = 130

    raise SystemExit(int(rc))


if __name__ == "__main__":
    main()
