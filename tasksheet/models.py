from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tasksheet.domain import ImportedFile, TaskRecord, TaskStatus
from tasksheet.services.statistics import TaskStatistics


class StatusUpdate(BaseModel):
    status: TaskStatus


class TaskOut(BaseModel):
    id: Optional[str] = None
    excel_file_id: Optional[str] = None
    nombre: str
    cantidad: Optional[str] = None
    status: TaskStatus
    sheet_name: str
    row_number: int
    cell_ref: str

    @classmethod
    def from_record(cls, task: TaskRecord) -> "TaskOut":
        return cls(
            id=task.id,
            excel_file_id=task.file_id,
            nombre=task.name,
            cantidad=task.quantity,
            status=task.status,
            sheet_name=task.sheet,
            row_number=task.row,
            cell_ref=task.cell_ref,
        )


class StatisticsOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    pending: int
    in_progress: int = Field(alias="inProgress")
    completed: int
    cancelled: int
    completion_percentage: float = Field(alias="completionPercentage")

    @classmethod
    def from_stats(cls, stats: TaskStatistics) -> "StatisticsOut":
        return cls(
            total=stats.total,
            pending=stats.pending,
            in_progress=stats.in_progress,
            completed=stats.completed,
            cancelled=stats.cancelled,
            completion_percentage=stats.completion_percentage,
        )


class FileSummary(BaseModel):
    id: str
    name: str
    uploaded_at: datetime
    updated_at: datetime
    total_tasks: int
    completed_tasks: int

    @classmethod
    def from_file(cls, imported: ImportedFile) -> "FileSummary":
        return cls(
            id=imported.id,
            name=imported.name,
            uploaded_at=imported.uploaded_at,
            updated_at=imported.updated_at,
            total_tasks=imported.total_tasks,
            completed_tasks=imported.completed_tasks,
        )


class FileDetail(FileSummary):
    statistics: StatisticsOut
    is_complete: bool
    filtered_count: int
    sheets: Dict[str, List[TaskOut]] = Field(default_factory=dict)


class TaskMutationResult(BaseModel):
    file_id: str
    task: Optional[TaskOut] = None
    statistics: StatisticsOut
    is_complete: bool
