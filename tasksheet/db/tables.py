"""
ORM tables for imported workbooks and their tasks.

``excel_files`` holds one row per imported workbook together with the
cached ``total_tasks`` / ``completed_tasks`` counters; ``todos`` holds the
tasks. Deleting a file deletes its tasks.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from tasksheet.domain import ImportedFile, TaskRecord, TaskStatus

STATUS_VALUES = tuple(status.value for status in TaskStatus)


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class ExcelFile(Base):
    __tablename__ = "excel_files"
    __table_args__ = (
        Index("idx_excel_files_updated_at", "updated_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    total_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    todos: Mapped[List["Todo"]] = relationship(
        back_populates="excel_file",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Todo.position",
    )


class Todo(Base):
    __tablename__ = "todos"
    __table_args__ = (
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{value}'" for value in STATUS_VALUES)),
            name="ck_todos_status",
        ),
        Index("idx_todos_excel_file_id", "excel_file_id"),
        Index("idx_todos_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    excel_file_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("excel_files.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Index of the task in its workbook's extraction order.
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nombre: Mapped[str] = mapped_column(Text, nullable=False)
    cantidad: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    sheet_name: Mapped[str] = mapped_column(Text, nullable=False)
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    cell_ref: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    excel_file: Mapped[ExcelFile] = relationship(back_populates="todos")

    def to_record(self) -> TaskRecord:
        return TaskRecord(
            id=self.id,
            name=self.nombre,
            quantity=self.cantidad,
            status=TaskStatus.parse(self.status),
            sheet=self.sheet_name,
            row=self.row_number,
            cell_ref=self.cell_ref,
            file_id=self.excel_file_id,
        )

    @classmethod
    def from_record(cls, record: TaskRecord, file_id: str, position: int) -> "Todo":
        return cls(position=position, **record.to_row(file_id))


def to_imported_file(excel_file: ExcelFile) -> ImportedFile:
    return ImportedFile(
        id=excel_file.id,
        name=excel_file.name,
        uploaded_at=excel_file.uploaded_at,
        updated_at=excel_file.updated_at,
        total_tasks=excel_file.total_tasks,
        completed_tasks=excel_file.completed_tasks,
        tasks=[todo.to_record() for todo in excel_file.todos],
    )
