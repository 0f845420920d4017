from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from tasksheet.domain import TaskRecord, TaskStatus


@dataclass(frozen=True)
class TaskStatistics:
    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
    completion_percentage: float


def compute_statistics(tasks: Sequence[TaskRecord]) -> TaskStatistics:
    """Per-status counts and the completion percentage of a task set."""
    counts = {status: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status] += 1

    total = len(tasks)
    completed = counts[TaskStatus.COMPLETED]
    percentage = (completed / total) * 100 if total > 0 else 0.0

    return TaskStatistics(
        total=total,
        pending=counts[TaskStatus.PENDING],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        completed=completed,
        cancelled=counts[TaskStatus.CANCELLED],
        completion_percentage=percentage,
    )


def is_fully_completed(stats: TaskStatistics) -> bool:
    return stats.total > 0 and stats.completed == stats.total


def filter_tasks(
    tasks: Iterable[TaskRecord],
    status: Optional[TaskStatus] = None,
    search: Optional[str] = None,
) -> List[TaskRecord]:
    """Keep tasks matching the status (any when None) and the search text.

    The search is a case-insensitive substring match on name or quantity.
    """
    needle = (search or "").lower()
    result = []
    for task in tasks:
        if status is not None and task.status != status:
            continue
        if needle:
            in_name = needle in task.name.lower()
            in_quantity = task.quantity is not None and needle in task.quantity.lower()
            if not (in_name or in_quantity):
                continue
        result.append(task)
    return result


def group_by_sheet(tasks: Iterable[TaskRecord]) -> Dict[str, List[TaskRecord]]:
    grouped: Dict[str, List[TaskRecord]] = {}
    for task in tasks:
        grouped.setdefault(task.sheet, []).append(task)
    return grouped
