from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from tasksheet.errors import InvalidStatusError


class TaskStatus(str, Enum):
    """Task lifecycle status. Values are the stored wire strings."""

    PENDING = "pendiente"
    IN_PROGRESS = "en-proceso"
    COMPLETED = "completado"
    CANCELLED = "cancelado"

    @classmethod
    def parse(cls, raw) -> "TaskStatus":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise InvalidStatusError(f"Invalid status {raw!r}; expected one of: {allowed}") from None


@dataclass
class TaskRecord:
    name: str
    quantity: Optional[str]
    status: TaskStatus
    sheet: str
    row: int
    cell_ref: str
    # Assigned by the store on first save.
    id: Optional[str] = None
    file_id: Optional[str] = None

    def to_row(self, file_id: str) -> Dict[str, Any]:
        """Persisted shape of the task, owned by ``file_id``."""
        return {
            "excel_file_id": file_id,
            "nombre": self.name,
            "cantidad": self.quantity,
            "status": self.status.value,
            "sheet_name": self.sheet,
            "row_number": self.row,
            "cell_ref": self.cell_ref,
        }


@dataclass
class ImportedFile:
    """One imported workbook and its task set, as stored."""

    id: str
    name: str
    uploaded_at: datetime
    updated_at: datetime
    total_tasks: int
    completed_tasks: int
    tasks: List[TaskRecord] = field(default_factory=list)
