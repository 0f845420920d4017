import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from tasksheet.dependencies import get_repository
from tasksheet.errors import ConnectivityError
from tasksheet.repositories.task_repository import TaskRepository
import tasksheet.state as state

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get('/health')
def health(repository: TaskRepository = Depends(get_repository)):
    try:
        repository.check_connection()
        tables = repository.tables_exist()
    except ConnectivityError as e:
        state.connection_status = "setup"
        state.connection_error = str(e)
        tables = False

    return {
        'status': 'ok' if state.connection_status == "connected" else 'degraded',
        'connection': state.connection_status,
        'error': state.connection_error,
        'tables': tables,
        'data_version': state.data_version,
        'last_updated': state.last_updated,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }


@router.post('/api/setup')
def setup(repository: TaskRepository = Depends(get_repository)):
    """Create the database tables and mark the store as connected."""
    try:
        repository.check_connection()
        repository.create_tables()
    except ConnectivityError as e:
        state.connection_status = "setup"
        state.connection_error = str(e)
        raise HTTPException(status_code=503, detail=str(e))

    state.connection_status = "connected"
    state.connection_error = None
    logger.info("Setup complete")
    return {'status': 'connected'}
