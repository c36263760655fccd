import csv
import tempfile
import unittest
from pathlib import Path

from fakes import T0
from rich.console import Console

from dsmove.report.results_writer import print_table, render_table, results_to_dicts, write_csv
from dsmove.scheduler.models import JobResult, TerminalState


RESULTS = [
    JobResult("vmA", TerminalState.SUCCEEDED, T0, T0.replace(minute=7)),
    JobResult("vmB", TerminalState.UNKNOWN, T0, None),
]


class TestResultsWriter(unittest.TestCase):
    def test_dicts_use_iso_times_and_blank_for_missing(self):
        rows = results_to_dicts(RESULTS)
        self.assertEqual(rows[0]["Name"], "vmA")
        self.assertEqual(rows[0]["State"], "Succeeded")
        self.assertEqual(rows[0]["StartTime"], "2024-05-01T12:00:00+00:00")
        self.assertEqual(rows[1]["EndTime"], "")

    def test_csv(self):
        with tempfile.TemporaryDirectory() as td:
            out = write_csv(RESULTS, Path(td) / "nested" / "wave.csv")
            with open(out, newline="", encoding="utf-8") as f:
                rows = list(csv.reader(f))
        self.assertEqual(rows[0], ["Name", "State", "StartTime", "EndTime"])
        self.assertEqual(rows[1][:2], ["vmA", "Succeeded"])
        self.assertEqual(rows[2], ["vmB", "Unknown", "2024-05-01T12:00:00+00:00", ""])

    def test_table(self):
        table = render_table(RESULTS)
        self.assertEqual(table.row_count, 2)
        self.assertEqual([c.header for c in table.columns], ["Name", "State", "StartTime", "EndTime"])

        console = Console(record=True, width=140)
        print_table(RESULTS, console=console)
        text = console.export_text()
        self.assertIn("vmA", text)
        self.assertIn("Unknown", text)


if __name__ == "__main__":
    unittest.main()
