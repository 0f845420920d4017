from fastapi import HTTPException, Request

from tasksheet.repositories.task_repository import TaskRepository
from tasksheet.services.autosave import DebounceScheduler
import tasksheet.state as state


def get_repository(request: Request) -> TaskRepository:
    return request.app.state.repository


def get_autosave(request: Request) -> DebounceScheduler:
    return request.app.state.autosave


def require_connection() -> None:
    """Reject data requests until the database is reachable and set up."""
    if state.connection_status != "connected":
        raise HTTPException(
            status_code=503,
            detail="Database not ready. Check the connection settings or run setup (POST /api/setup).",
        )
