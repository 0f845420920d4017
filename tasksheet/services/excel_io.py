import io
import logging
import os
from typing import List, Tuple

import pandas as pd
from openpyxl import load_workbook

from tasksheet.config import ALLOWED_EXCEL_EXTENSIONS
from tasksheet.errors import WorkbookReadError
from tasksheet.services.grid import CellGrid, grid_from_frame, grid_from_worksheet

logger = logging.getLogger(__name__)


def load_workbook_grids(data: bytes, filename: str) -> List[Tuple[str, CellGrid]]:
    """Parse uploaded spreadsheet bytes into (sheet name, grid) pairs in workbook order."""
    stem, ext = os.path.splitext(os.path.basename(filename))
    ext = ext.lower()

    if ext in ALLOWED_EXCEL_EXTENSIONS:
        return _read_excel_grids(data, filename)
    if ext == ".csv":
        return [(stem or "Sheet1", _read_csv_grid(data, filename))]

    raise WorkbookReadError(f"Unsupported file type: '{ext or filename}'")


def _read_excel_grids(data, filename):
    try:
        # data_only: formula cells yield their cached value, as a viewer shows them.
        workbook = load_workbook(io.BytesIO(data), data_only=True)
    except Exception as e:
        raise WorkbookReadError(f"Could not read workbook '{filename}': {e}") from e

    try:
        grids = [(ws.title, grid_from_worksheet(ws)) for ws in workbook.worksheets]
    finally:
        workbook.close()

    logger.info("Read %d sheets from '%s'", len(grids), filename)
    return grids


def _read_csv_grid(data, filename):
    try:
        df = pd.read_csv(
            io.BytesIO(data),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.EmptyDataError:
        return CellGrid()
    except Exception as e:
        raise WorkbookReadError(f"Could not read CSV '{filename}': {e}") from e

    logger.info("Read %d CSV rows from '%s'", len(df.index), filename)
    return grid_from_frame(df)
