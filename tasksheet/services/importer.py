import logging
from concurrent.futures import Future
from datetime import datetime
from typing import Optional

from tasksheet.domain import ImportedFile, TaskStatus
from tasksheet.errors import ConnectivityError
from tasksheet.models import FileDetail, FileSummary, StatisticsOut, TaskOut
from tasksheet.repositories.task_repository import TaskRepository
from tasksheet.services.autosave import DebounceScheduler
from tasksheet.services.excel_io import load_workbook_grids
from tasksheet.services.extraction import aggregate_workbook
from tasksheet.services.statistics import compute_statistics, filter_tasks, group_by_sheet, is_fully_completed
import tasksheet.state as state

logger = logging.getLogger(__name__)


def import_workbook(repository: TaskRepository, data: bytes, filename: str) -> str:
    """Extract the tasks of an uploaded workbook and store them as one file.

    Nothing is stored when extraction fails; the errors propagate unchanged.
    """
    grids = load_workbook_grids(data, filename)
    tasks = aggregate_workbook(grids)
    file_id = repository.save_workbook(filename, tasks)

    logger.info("[%s] Imported %d tasks from '%s'", datetime.now().strftime("%H:%M:%S"), len(tasks), filename)
    state.notify_clients()
    return file_id


def save_changes(repository: TaskRepository, file_id: str) -> None:
    repository.save_all_changes(file_id)
    state.notify_clients()


def schedule_auto_save(scheduler: DebounceScheduler, repository: TaskRepository, file_id: str) -> Future:
    return scheduler.schedule(file_id, lambda: save_changes(repository, file_id))


def build_file_detail(
    imported: ImportedFile,
    status: Optional[TaskStatus] = None,
    search: Optional[str] = None,
) -> FileDetail:
    """File view: statistics over the full task set, tasks filtered and grouped by sheet."""
    stats = compute_statistics(imported.tasks)
    visible = filter_tasks(imported.tasks, status=status, search=search)
    sheets = {
        sheet: [TaskOut.from_record(task) for task in tasks]
        for sheet, tasks in group_by_sheet(visible).items()
    }
    summary = FileSummary.from_file(imported)
    return FileDetail(
        **summary.model_dump(),
        statistics=StatisticsOut.from_stats(stats),
        is_complete=is_fully_completed(stats),
        filtered_count=len(visible),
        sheets=sheets,
    )


def initialize_store(repository: TaskRepository, auto_create_tables: bool) -> str:
    """Check the database and record the resulting connection status in ``state``."""
    try:
        repository.check_connection()
        if not repository.tables_exist():
            if not auto_create_tables:
                logger.warning("Database tables are missing; setup required")
                state.connection_status = "setup"
                state.connection_error = None
                return state.connection_status
            repository.create_tables()
    except ConnectivityError as e:
        logger.error("Database setup required: %s", e)
        state.connection_status = "setup"
        state.connection_error = str(e)
        return state.connection_status

    state.connection_status = "connected"
    state.connection_error = None
    return state.connection_status
