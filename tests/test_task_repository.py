# tests/test_task_repository.py

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from tasksheet.db.session import make_engine
from tasksheet.db.tables import ExcelFile, Todo
from tasksheet.domain import TaskRecord, TaskStatus
from tasksheet.errors import (
    ConnectivityError,
    InvalidStatusError,
    PersistencePartialFailure,
    RecordNotFoundError,
)
from tasksheet.repositories.task_repository import TaskRepository


def _tasks(*names, sheet="Hoja1"):
    return [
        TaskRecord(
            name=name,
            quantity=str(i) if i % 2 else None,
            status=TaskStatus.PENDING,
            sheet=sheet,
            row=i + 2,
            cell_ref=f"A{i + 2}",
        )
        for i, name in enumerate(names)
    ]


def assert_counters_consistent(repository, file_id):
    stored = repository.get_file(file_id)
    assert stored.total_tasks == len(stored.tasks)
    assert stored.completed_tasks == sum(1 for t in stored.tasks if t.status is TaskStatus.COMPLETED)


def test_save_workbook_stores_every_task_in_order(repository):
    file_id = repository.save_workbook("obra.xlsx", _tasks("a", "b", "c"))

    stored = repository.get_file(file_id)

    assert stored.name == "obra.xlsx"
    assert [t.name for t in stored.tasks] == ["a", "b", "c"]
    assert [t.quantity for t in stored.tasks] == [None, "1", None]
    assert all(t.id and t.file_id == file_id for t in stored.tasks)
    assert (stored.total_tasks, stored.completed_tasks) == (3, 0)


def test_save_workbook_removes_file_when_tasks_fail(repository, monkeypatch):
    def failing_insert(session, file_id, tasks):
        raise SQLAlchemyError("insert rejected")

    monkeypatch.setattr(repository, "_insert_tasks", failing_insert)

    with pytest.raises(PersistencePartialFailure) as exc_info:
        repository.save_workbook("roto.xlsx", _tasks("a"))

    assert exc_info.value.file_name == "roto.xlsx"
    assert repository.list_files() == []


def test_outage_during_insert_leaves_no_file_behind(repository, monkeypatch):
    def failing_insert(session, file_id, tasks):
        raise OperationalError("INSERT INTO todos", {}, Exception("disk I/O error"))

    real_factory = repository._session_factory
    opened = []

    def factory_failing_after_first():
        opened.append(1)
        if len(opened) > 1:
            raise OperationalError("connect", {}, Exception("unable to open database file"))
        return real_factory()

    monkeypatch.setattr(repository, "_insert_tasks", failing_insert)
    monkeypatch.setattr(repository, "_session_factory", factory_failing_after_first)

    with pytest.raises(ConnectivityError):
        repository.save_workbook("x.xlsx", _tasks("a"))

    assert len(opened) == 2
    monkeypatch.undo()
    assert repository.list_files() == []
    with Session(repository.engine) as session:
        assert session.scalar(select(func.count()).select_from(ExcelFile)) == 0


def test_update_status_refreshes_counters(repository):
    file_id = repository.save_workbook("obra.xlsx", _tasks("a", "b"))
    first, second = repository.get_file(file_id).tasks

    updated = repository.update_task_status(first.id, TaskStatus.COMPLETED)
    repository.update_task_status(second.id, "en-proceso")

    assert updated.status is TaskStatus.COMPLETED
    stored = repository.get_file(file_id)
    assert [t.status for t in stored.tasks] == [TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS]
    assert stored.completed_tasks == 1
    assert_counters_consistent(repository, file_id)


def test_update_status_rejects_unknown_status_and_task(repository):
    file_id = repository.save_workbook("obra.xlsx", _tasks("a"))
    (task,) = repository.get_file(file_id).tasks

    with pytest.raises(InvalidStatusError):
        repository.update_task_status(task.id, "done")
    with pytest.raises(RecordNotFoundError):
        repository.update_task_status("missing", TaskStatus.COMPLETED)

    assert repository.get_file(file_id).tasks[0].status is TaskStatus.PENDING


def test_status_check_constraint_guards_the_table(repository):
    file_id = repository.save_workbook("obra.xlsx", _tasks("a"))

    with Session(repository.engine) as session:
        session.add(Todo(
            excel_file_id=file_id,
            nombre="x",
            status="done",
            sheet_name="Hoja1",
            row_number=3,
            cell_ref="A3",
        ))
        with pytest.raises(IntegrityError):
            session.commit()


def test_delete_task_refreshes_counters(repository):
    file_id = repository.save_workbook("obra.xlsx", _tasks("a", "b", "c"))
    tasks = repository.get_file(file_id).tasks
    repository.update_task_status(tasks[0].id, TaskStatus.COMPLETED)

    owner = repository.delete_task(tasks[0].id)

    assert owner == file_id
    stored = repository.get_file(file_id)
    assert [t.name for t in stored.tasks] == ["b", "c"]
    assert (stored.total_tasks, stored.completed_tasks) == (2, 0)
    with pytest.raises(RecordNotFoundError):
        repository.delete_task(tasks[0].id)


def test_delete_file_removes_its_tasks(repository):
    keep = repository.save_workbook("keep.xlsx", _tasks("a"))
    drop = repository.save_workbook("drop.xlsx", _tasks("b", "c"))

    repository.delete_file(drop)

    assert repository.get_file(drop) is None
    with Session(repository.engine) as session:
        remaining = session.scalar(select(func.count()).select_from(Todo))
        assert remaining == 1
        assert session.get(ExcelFile, keep) is not None
    with pytest.raises(RecordNotFoundError):
        repository.delete_file(drop)


def test_list_files_newest_update_first(repository):
    older = repository.save_workbook("older.xlsx", _tasks("a"))
    newer = repository.save_workbook("newer.xlsx", _tasks("b"))

    assert [f.id for f in repository.list_files()] == [newer, older]

    repository.save_all_changes(older)

    assert [f.id for f in repository.list_files()] == [older, newer]


def test_save_all_changes_requires_existing_file(repository):
    with pytest.raises(RecordNotFoundError):
        repository.save_all_changes("missing")


def test_tables_exist_only_after_create(database_url):
    repo = TaskRepository(make_engine(database_url))

    assert repo.tables_exist() is False
    repo.create_tables()
    assert repo.tables_exist() is True


def test_unreachable_database_raises_connectivity_error(tmp_path):
    repo = TaskRepository(make_engine(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite3'}"))

    with pytest.raises(ConnectivityError):
        repo.check_connection()
