from __future__ import annotations
import datetime as _dt
import logging
from typing import List, Optional

from pathlib import Path
from termcolor import colored as _colored

# below DEBUG: per-task registry detail (every task counted or polled)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVEL_EMOJI = {
    "TRACE": "🔬",
    "DEBUG": "🔍",
    "INFO": "✅",
    "WARNING": "⚠️",
    "ERROR": "💥",
    "CRITICAL": "🧨",
}
_LEVEL_COLOR = {
    "TRACE": "magenta",
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red",
}
def c(text: str, color: Optional[str] = None, attrs: Optional[List[str]] = None) -> str:
    """Colorize text with termcolor (no-op without a color)."""
    if not color:
        return text
    return _colored(text, color=color, attrs=attrs or [])
class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = _dt.datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        emoji = _LEVEL_EMOJI.get(record.levelname, "•")
        lvl = c(record.levelname, _LEVEL_COLOR.get(record.levelname))
        msg = record.getMessage()
        if record.levelno >= logging.WARNING:
            msg = c(msg, _LEVEL_COLOR.get(record.levelname), attrs=["bold"])
        return f"{ts} {emoji} {lvl:<8} {msg}"
class Log:
    @staticmethod
    def level_for(verbose: int) -> int:
        """0 -> INFO, -v -> DEBUG, -vv and up -> TRACE."""
        if verbose >= 2:
            return TRACE
        if verbose == 1:
            return logging.DEBUG
        return logging.INFO
    @staticmethod
    def setup(verbose: int, log_file: Optional[str]) -> logging.Logger:
        logger = logging.getLogger("dsmove")
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
        logger.propagate = False
        level = Log.level_for(int(verbose or 0))
        logger.setLevel(level)
        fmt = EmojiFormatter()
        sh = logging.StreamHandler()
        sh.setLevel(level)
        sh.setFormatter(fmt)
        logger.addHandler(sh)
        if log_file:
            fp = Path(log_file).expanduser().resolve()
            fp.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(fp, encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(fmt)
            logger.addHandler(fh)
        logger.debug(f"Logger initialized at {logging.getLevelName(level)}")
        return logger
