"""
Task repository - database operations for imported files and their tasks.

Every operation that inserts, updates or deletes a task recomputes the
owning file's ``total_tasks`` / ``completed_tasks`` counters and bumps its
``updated_at`` in the same transaction.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import func, inspect, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from tasksheet.db.session import make_session_factory, session_scope
from tasksheet.db.tables import Base, ExcelFile, Todo, to_imported_file
from tasksheet.domain import ImportedFile, TaskRecord, TaskStatus
from tasksheet.errors import (
    ConnectivityError,
    MutationError,
    PersistencePartialFailure,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for imported workbooks and their task sets."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)

    # ---- setup ----

    def check_connection(self) -> None:
        """Raise ConnectivityError when the database cannot be reached."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (OperationalError, InterfaceError) as e:
            raise ConnectivityError(f"Cannot connect to database: {e.orig or e}") from e

    def tables_exist(self) -> bool:
        try:
            inspector = inspect(self.engine)
            return all(inspector.has_table(name) for name in Base.metadata.tables)
        except (OperationalError, InterfaceError) as e:
            raise ConnectivityError(f"Cannot inspect database: {e.orig or e}") from e

    def create_tables(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except (OperationalError, InterfaceError) as e:
            raise ConnectivityError(f"Cannot create tables: {e.orig or e}") from e
        logger.info("Database tables ready")

    # ---- import ----

    def save_workbook(self, name: str, tasks: Sequence[TaskRecord]) -> str:
        """Store a file record and all of its tasks; return the new file id.

        The file row and its tasks are written in one transaction, so a
        failure rolls both back. A lost connection is re-raised as
        ConnectivityError; any other database error becomes
        PersistencePartialFailure.
        """
        logger.info("Saving file '%s' with %d tasks", name, len(tasks))

        file_id = None
        try:
            with session_scope(self._session_factory) as session:
                excel_file = ExcelFile(name=name, total_tasks=len(tasks), completed_tasks=0)
                session.add(excel_file)
                session.flush()
                file_id = excel_file.id
                self._insert_tasks(session, file_id, tasks)
                self._refresh_counters(session, file_id)
        except ConnectivityError:
            logger.error("Database unavailable while saving file '%s'", name)
            self._discard_file(file_id)
            raise
        except SQLAlchemyError as e:
            logger.error("Error inserting tasks for file '%s': %s", name, e)
            self._discard_file(file_id)
            raise PersistencePartialFailure(f"Error saving tasks: {e}", file_name=name) from e

        logger.info("Saved file '%s' as %s", name, file_id)
        return file_id

    def _insert_tasks(self, session: Session, file_id: str, tasks: Sequence[TaskRecord]) -> None:
        session.add_all(
            Todo.from_record(task, file_id, position)
            for position, task in enumerate(tasks)
        )
        session.flush()

    def _discard_file(self, file_id: Optional[str]) -> None:
        """Delete a file row left behind by a failed save, if any."""
        if file_id is None:
            return
        try:
            with session_scope(self._session_factory) as session:
                excel_file = session.get(ExcelFile, file_id)
                if excel_file is not None:
                    session.delete(excel_file)
                    logger.warning("Removed file %s after failed import", file_id)
        except (SQLAlchemyError, ConnectivityError) as e:
            logger.error("Could not check file %s after failed import: %s", file_id, e)

    # ---- reads ----

    def list_files(self) -> List[ImportedFile]:
        """All files with their tasks, most recently updated first."""
        with session_scope(self._session_factory) as session:
            result = session.execute(
                select(ExcelFile)
                .options(selectinload(ExcelFile.todos))
                .order_by(ExcelFile.updated_at.desc())
            )
            files = [to_imported_file(excel_file) for excel_file in result.scalars().all()]
        logger.debug("Loaded %d files", len(files))
        return files

    def get_file(self, file_id: str) -> Optional[ImportedFile]:
        with session_scope(self._session_factory) as session:
            result = session.execute(
                select(ExcelFile)
                .options(selectinload(ExcelFile.todos))
                .where(ExcelFile.id == file_id)
            )
            excel_file = result.scalar_one_or_none()
            return to_imported_file(excel_file) if excel_file is not None else None

    # ---- mutations ----

    def update_task_status(self, task_id: str, status) -> TaskRecord:
        """Set a task's status. Raises MutationError without changing anything on failure."""
        status = TaskStatus.parse(status)
        try:
            with session_scope(self._session_factory) as session:
                todo = session.get(Todo, task_id)
                if todo is None:
                    raise RecordNotFoundError("Task", task_id)
                todo.status = status.value
                self._refresh_counters(session, todo.excel_file_id)
                record = todo.to_record()
        except SQLAlchemyError as e:
            logger.error("Error updating task %s: %s", task_id, e)
            raise MutationError(f"Error updating task: {e}") from e

        logger.info("Task %s set to %s", task_id, status.value)
        return record

    def delete_task(self, task_id: str) -> str:
        """Delete one task and return the id of the file it belonged to."""
        try:
            with session_scope(self._session_factory) as session:
                todo = session.get(Todo, task_id)
                if todo is None:
                    raise RecordNotFoundError("Task", task_id)
                file_id = todo.excel_file_id
                session.delete(todo)
                session.flush()
                self._refresh_counters(session, file_id)
        except SQLAlchemyError as e:
            logger.error("Error deleting task %s: %s", task_id, e)
            raise MutationError(f"Error deleting task: {e}") from e

        logger.info("Deleted task %s", task_id)
        return file_id

    def delete_file(self, file_id: str) -> None:
        """Delete a file together with its whole task set."""
        try:
            with session_scope(self._session_factory) as session:
                excel_file = session.get(ExcelFile, file_id)
                if excel_file is None:
                    raise RecordNotFoundError("File", file_id)
                session.delete(excel_file)
        except SQLAlchemyError as e:
            logger.error("Error deleting file %s: %s", file_id, e)
            raise MutationError(f"Error deleting file: {e}") from e

        logger.info("Deleted file %s", file_id)

    def save_all_changes(self, file_id: str) -> None:
        """Mark a file as saved: refresh its counters and ``updated_at``."""
        try:
            with session_scope(self._session_factory) as session:
                if session.get(ExcelFile, file_id) is None:
                    raise RecordNotFoundError("File", file_id)
                self._refresh_counters(session, file_id)
        except SQLAlchemyError as e:
            logger.error("Error saving changes for file %s: %s", file_id, e)
            raise MutationError(f"Error saving changes: {e}") from e

        logger.info("Saved changes for file %s", file_id)

    @staticmethod
    def _refresh_counters(session: Session, file_id: str) -> None:
        total = session.scalar(
            select(func.count()).select_from(Todo).where(Todo.excel_file_id == file_id)
        )
        completed = session.scalar(
            select(func.count())
            .select_from(Todo)
            .where(Todo.excel_file_id == file_id, Todo.status == TaskStatus.COMPLETED.value)
        )
        session.execute(
            update(ExcelFile)
            .where(ExcelFile.id == file_id)
            .values(
                total_tasks=total,
                completed_tasks=completed,
                updated_at=datetime.now(timezone.utc),
            )
        )
