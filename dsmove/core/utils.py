from __future__ import annotations
import datetime as _dt
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from .exceptions import Fatal

class U:
    @staticmethod
    def die(logger: logging.Logger, msg: str, code: int = 1) -> None:
        logger.error(msg)
        raise Fatal(code, msg)
    @staticmethod
    def ensure_dir(p: Path) -> None:
        p.mkdir(parents=True, exist_ok=True)
    @staticmethod
    def now() -> _dt.datetime:
        return _dt.datetime.now(_dt.timezone.utc)
    @staticmethod
    def iso(ts: Optional[_dt.datetime]) -> str:
        return ts.isoformat() if ts is not None else ""
    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)
    @staticmethod
    def banner(logger: logging.Logger, title: str) -> None:
        line = "─" * max(10, len(title) + 2)
        logger.info(line)
        logger.info(f" {title}")
        logger.info(line)
    @staticmethod
    def read_name_list(logger: logging.Logger, path: str) -> List[str]:
        """
        One name per line. Blank lines and '#' comments are ignored; order and
        duplicates are preserved.
        """
        p = Path(path).expanduser().resolve()
        if not p.exists():
            U.die(logger, f"VM list not found: {p}", 2)
        names: List[str] = []
        for raw in p.read_text(encoding="utf-8").splitlines():
            line = raw.split("#", 1)[0].strip()
            if line:
                names.append(line)
        logger.debug(f"Read {len(names)} VM name(s) from {p}")
        return names
