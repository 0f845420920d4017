# tests/conftest.py

import io
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

import tasksheet.state as state
from tasksheet import create_app
from tasksheet.db.session import make_engine
from tasksheet.repositories.task_repository import TaskRepository
from tasksheet.services.grid import CellGrid


@pytest.fixture(autouse=True)
def reset_state():
    """Module-level notification state is process-wide; start each test clean."""
    state.connection_status = "checking"
    state.connection_error = None
    state.data_version = 0
    state.last_updated = None
    state.connected_clients.clear()
    yield
    state.connected_clients.clear()


def build_grid(rows, first_row=0, first_col=0):
    """Grid from a list of row lists; ``None`` entries are absent cells."""
    cells = {}
    width = 1
    for r, values in enumerate(rows):
        width = max(width, len(values))
        for c, value in enumerate(values):
            if value is not None:
                cells[(first_row + r, first_col + c)] = value
    return CellGrid(
        cells=cells,
        min_row=first_row,
        max_row=first_row + max(len(rows), 1) - 1,
        min_col=first_col,
        max_col=first_col + width - 1,
    )


@pytest.fixture()
def grid_factory():
    return build_grid


def build_workbook(sheets):
    """xlsx bytes for an ordered mapping of sheet name -> list of rows."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture()
def workbook_factory():
    return build_workbook


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'tasksheet.sqlite3'}"


@pytest.fixture()
def repository(database_url: str) -> TaskRepository:
    repo = TaskRepository(make_engine(database_url))
    repo.create_tables()
    yield repo
    repo.engine.dispose()


@pytest.fixture()
def client(database_url: str):
    # Long delay: auto-saves stay pending so tests can inspect them.
    app = create_app(database_url=database_url, auto_save_delay=30)
    with TestClient(app) as test_client:
        yield test_client
