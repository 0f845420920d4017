from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, Iterator, Optional, Tuple

import pandas as pd
from openpyxl.utils import get_column_letter


def cell_ref(row: int, col: int) -> str:
    """Spreadsheet coordinate for a zero-based (row, col) pair, e.g. (0, 0) -> 'A1'."""
    return f"{get_column_letter(col + 1)}{row + 1}"


def cell_text(value: Any) -> str:
    """Render a cell value as the text a spreadsheet would show for it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class CellGrid:
    """Sparse cells of one sheet plus its inclusive bounding range.

    Coordinates are zero-based. Only cells holding a non-null value are stored.
    """

    cells: Dict[Tuple[int, int], Any] = field(default_factory=dict)
    min_row: int = 0
    max_row: int = 0
    min_col: int = 0
    max_col: int = 0

    def get(self, row: int, col: int) -> Optional[Any]:
        return self.cells.get((row, col))

    def rows(self) -> range:
        return range(self.min_row, self.max_row + 1)

    def columns(self) -> range:
        return range(self.min_col, self.max_col + 1)

    def __iter__(self) -> Iterator[Tuple[int, int, Any]]:
        for row in self.rows():
            for col in self.columns():
                value = self.get(row, col)
                if value is not None:
                    yield row, col, value


def grid_from_worksheet(ws) -> CellGrid:
    """Build a grid from an openpyxl worksheet using the sheet's own dimension."""
    cells = {}
    for row in ws.iter_rows(
        min_row=ws.min_row,
        max_row=ws.max_row,
        min_col=ws.min_column,
        max_col=ws.max_column,
    ):
        for cell in row:
            if cell.value is None:
                continue
            cells[(cell.row - 1, cell.column - 1)] = cell.value

    return CellGrid(
        cells=cells,
        min_row=ws.min_row - 1,
        max_row=ws.max_row - 1,
        min_col=ws.min_column - 1,
        max_col=ws.max_column - 1,
    )


def grid_from_frame(df: pd.DataFrame) -> CellGrid:
    """Build a grid from a DataFrame read with ``header=None``.

    NaN and empty strings are treated as absent cells.
    """
    cells = {}
    for row_idx, row in enumerate(df.itertuples(index=False, name=None)):
        for col_idx, value in enumerate(row):
            if value is None or (not isinstance(value, str) and pd.isna(value)):
                continue
            if isinstance(value, str) and value == "":
                continue
            cells[(row_idx, col_idx)] = value

    return CellGrid(
        cells=cells,
        min_row=0,
        max_row=max(len(df.index) - 1, 0),
        min_col=0,
        max_col=max(len(df.columns) - 1, 0),
    )
