"""
Results table export.

Writes the per-image counts and mean sizes to a UTF-8 CSV file and
renders the same table as aligned plain text for the console.
"""

from __future__ import annotations
import csv
import math
from pathlib import Path
from typing import List, Union

from synapse_counter.core.results import ResultsTable


def _fmt(v, precision: int) -> str:
    if isinstance(v, float):
        return "NaN" if math.isnan(v) else f"{v:.{precision}f}"
    return str(v)


def write_csv(path: Union[str, Path], table: ResultsTable, precision: int = 3) -> None:
    """Write the results table as CSV (header = table columns)."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(ResultsTable.columns())
        for row in table:
            writer.writerow([_fmt(v, precision) for v in row.values()])


def format_table(table: ResultsTable, precision: int = 3) -> str:
    """Render the results table as aligned text."""
    header = ResultsTable.columns()
    body: List[List[str]] = [[_fmt(v, precision) for v in row.values()] for row in table]
    widths = [max(len(h), *(len(r[i]) for r in body)) if body else len(h)
              for i, h in enumerate(header)]
    lines = ["  ".join(h.ljust(w) for h, w in zip(header, widths))]
    for r in body:
        lines.append("  ".join(c.ljust(w) if i == 0 else c.rjust(w)
                               for i, (c, w) in enumerate(zip(r, widths))))
    return "\n".join(lines)
