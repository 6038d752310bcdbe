# plantable/render/csv.py
from __future__ import annotations

import csv
from typing import IO, Iterable, List, Sequence

from ..table import ChartContext, ColumnTable, ReportTable, ReportTableCell, ReportTableLine

Row = List[str]


def _cells_to_csv(cells: Sequence[ReportTableCell]) -> Row:
    """Visible cells in order. A span of n columns is its text plus n-1 blanks.

    Hidden cells not covered by a column span (e.g. the lower rows of a cell
    spanning several scenario rows) become blanks to keep columns aligned.
    """
    out: Row = []
    covered = 0
    for cell in cells:
        if cell.hidden:
            if covered > 0:
                covered -= 1
            else:
                out.append("")
            continue
        if isinstance(cell.special, ReportTableLine):
            out.extend(_cells_to_csv(cell.special.cells))
            continue
        out.append(cell.text or "")
        extra = max(0, cell.columns - 1)
        out.extend([""] * extra)
        covered = extra
    return out


def header_row(table: ReportTable) -> Row:
    out: Row = []
    for column in table.columns:
        special = column.cell1.special
        if isinstance(special, ChartContext):
            continue
        if isinstance(special, ColumnTable):
            out.extend(special.lower_labels())
            continue
        out.append(column.cell1.text or "")
    return out


def table_to_csv(table: ReportTable) -> List[Row]:
    """Header row followed by one row per line; chart columns are left out."""
    chart_cols = {i for i, c in enumerate(table.columns) if isinstance(c.cell1.special, ChartContext)}
    rows = [header_row(table)]
    for line in table.lines:
        cells = [c for i, c in enumerate(line.cells) if i not in chart_cols]
        rows.append(_cells_to_csv(cells))
    return rows


def write_csv(rows: Iterable[Sequence[str]], fp: IO[str], *, delimiter: str = ";") -> None:
    writer = csv.writer(fp, delimiter=delimiter, lineterminator="\n")
    for row in rows:
        writer.writerow(row)


__all__ = ["header_row", "table_to_csv", "write_csv"]
