from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..core.utils import U
from ..scheduler.models import JobResult, TerminalState

COLUMNS = ("Name", "State", "StartTime", "EndTime")

_STATE_STYLE = {
    TerminalState.SUCCEEDED: "green",
    TerminalState.FAILED: "bold red",
    TerminalState.UNKNOWN: "yellow",
}


def results_to_dicts(results: Sequence[JobResult]) -> List[Dict[str, Any]]:
    return [
        {
            "Name": r.subject_id,
            "State": r.terminal_state.value,
            "StartTime": U.iso(r.start_time),
            "EndTime": U.iso(r.end_time),
        }
        for r in results
    ]


def render_table(results: Sequence[JobResult], *, title: str = "Migration results") -> Table:
    table = Table(title=title)
    for col in COLUMNS:
        table.add_column(col, no_wrap=(col != "Name"))
    for r in results:
        table.add_row(
            r.subject_id,
            f"[{_STATE_STYLE[r.terminal_state]}]{r.terminal_state.value}[/]",
            U.iso(r.start_time),
            U.iso(r.end_time),
        )
    return table


def print_table(results: Sequence[JobResult], console: Optional[Console] = None) -> None:
    (console or Console()).print(render_table(results))


def write_csv(results: Sequence[JobResult], path: Path) -> Path:
    """Write results as CSV (header Name,State,StartTime,EndTime; ISO-8601 times)."""
    p = Path(path).expanduser().resolve()
    U.ensure_dir(p.parent)
    with open(p, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(COLUMNS))
        w.writeheader()
        w.writerows(results_to_dicts(results))
    return p
