import logging

from fastapi import APIRouter, Depends, HTTPException

from tasksheet.dependencies import get_autosave, get_repository, require_connection
from tasksheet.errors import ConnectivityError, MutationError, RecordNotFoundError
from tasksheet.models import StatisticsOut, StatusUpdate, TaskMutationResult, TaskOut
from tasksheet.repositories.task_repository import TaskRepository
from tasksheet.services.autosave import DebounceScheduler
from tasksheet.services.importer import schedule_auto_save
from tasksheet.services.statistics import compute_statistics, is_fully_completed
import tasksheet.state as state

router = APIRouter(dependencies=[Depends(require_connection)])
logger = logging.getLogger(__name__)


def _mutation_result(repository, file_id, task=None):
    try:
        imported = repository.get_file(file_id)
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if imported is None:
        raise HTTPException(status_code=404, detail="File not found")
    stats = compute_statistics(imported.tasks)
    return TaskMutationResult(
        file_id=file_id,
        task=TaskOut.from_record(task) if task is not None else None,
        statistics=StatisticsOut.from_stats(stats),
        is_complete=is_fully_completed(stats),
    )


@router.patch("/tasks/{task_id}", response_model=TaskMutationResult)
def update_task_status(
    task_id: str,
    update: StatusUpdate,
    repository: TaskRepository = Depends(get_repository),
    autosave: DebounceScheduler = Depends(get_autosave),
):
    """Change a task's lifecycle status and schedule an auto-save of its file."""
    try:
        task = repository.update_task_status(task_id, update.status)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except MutationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    state.notify_clients()
    schedule_auto_save(autosave, repository, task.file_id)
    return _mutation_result(repository, task.file_id, task)


@router.delete("/tasks/{task_id}", response_model=TaskMutationResult)
def delete_task(
    task_id: str,
    repository: TaskRepository = Depends(get_repository),
    autosave: DebounceScheduler = Depends(get_autosave),
):
    try:
        file_id = repository.delete_task(task_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except MutationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    state.notify_clients()
    schedule_auto_save(autosave, repository, file_id)
    return _mutation_result(repository, file_id)
