"""Turn the sheets of a workbook into an ordered list of pending tasks.

Each sheet is handled in two passes. ``locate_columns`` finds the column
holding task names (and optionally quantities) by header text, then
``extract_rows`` walks every row of the sheet and yields one candidate per
usable name cell. ``aggregate_workbook`` runs both over every sheet and
concatenates the results in workbook order.
"""

import logging
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

from tasksheet.config import NAME_HEADER_KEYWORD, QUANTITY_HEADER_KEYWORD
from tasksheet.domain import TaskRecord, TaskStatus
from tasksheet.errors import EmptyExtractionError
from tasksheet.services.grid import CellGrid, cell_ref, cell_text

logger = logging.getLogger(__name__)


class ColumnLocation(NamedTuple):
    name_col: int
    quantity_col: Optional[int]


class ExtractedRow(NamedTuple):
    name: str
    quantity: Optional[str]
    cell_ref: str
    row_number: int


def locate_columns(
    grid: CellGrid,
    name_keyword: str = NAME_HEADER_KEYWORD,
    quantity_keyword: str = QUANTITY_HEADER_KEYWORD,
) -> ColumnLocation:
    """Find the name and quantity columns by scanning header text row-major.

    The first cell containing ``name_keyword`` wins, and scanning stops once
    the row holding it has been read. The quantity column is the first cell
    containing ``quantity_keyword`` among the scanned rows. Without a name
    header the leftmost column of the range is used; the quantity column has
    no fallback.
    """
    name_keyword = name_keyword.lower()
    quantity_keyword = quantity_keyword.lower()
    name_col = None
    quantity_col = None

    for row in grid.rows():
        if name_col is not None:
            break
        for col in grid.columns():
            value = grid.get(row, col)
            if value is None:
                continue
            text = cell_text(value).lower()
            if name_col is None and name_keyword in text:
                name_col = col
            if quantity_col is None and quantity_keyword in text:
                quantity_col = col

    if name_col is None:
        name_col = grid.min_col

    return ColumnLocation(name_col, quantity_col)


def extract_rows(
    grid: CellGrid,
    location: ColumnLocation,
    name_keyword: str = NAME_HEADER_KEYWORD,
) -> Iterator[ExtractedRow]:
    """Yield one candidate per row whose name cell holds task text.

    Header-like rows are skipped by content: any name cell containing the
    name keyword is dropped, wherever it appears in the sheet.
    """
    name_keyword = name_keyword.lower()

    for row in grid.rows():
        name_value = grid.get(row, location.name_col)
        if name_value is None:
            continue

        name = cell_text(name_value).strip()
        if not name or name_keyword in name.lower():
            continue

        quantity = None
        if location.quantity_col is not None:
            quantity_value = grid.get(row, location.quantity_col)
            if quantity_value is not None:
                quantity = cell_text(quantity_value).strip()

        yield ExtractedRow(
            name=name,
            quantity=quantity,
            cell_ref=cell_ref(row, location.name_col),
            row_number=row + 1,
        )


def extract_sheet(sheet_name: str, grid: CellGrid) -> List[TaskRecord]:
    location = locate_columns(grid)
    tasks = [
        TaskRecord(
            name=candidate.name,
            quantity=candidate.quantity,
            status=TaskStatus.PENDING,
            sheet=sheet_name,
            row=candidate.row_number,
            cell_ref=candidate.cell_ref,
        )
        for candidate in extract_rows(grid, location)
    ]
    logger.debug(
        "Sheet '%s': name column %d, quantity column %s, %d tasks",
        sheet_name,
        location.name_col,
        location.quantity_col,
        len(tasks),
    )
    return tasks


def aggregate_workbook(sheets: Iterable[Tuple[str, CellGrid]]) -> List[TaskRecord]:
    """Extract every sheet and concatenate the tasks in workbook order.

    Raises ``EmptyExtractionError`` when no sheet yields a single task.
    """
    tasks = []
    sheet_count = 0
    for sheet_name, grid in sheets:
        sheet_count += 1
        tasks.extend(extract_sheet(sheet_name, grid))

    if not tasks:
        raise EmptyExtractionError()

    logger.info("Extracted %d tasks from %d sheets", len(tasks), sheet_count)
    return tasks
