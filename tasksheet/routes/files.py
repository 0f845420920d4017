import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from tasksheet.config import ALLOWED_UPLOAD_EXTENSIONS, MAX_UPLOAD_BYTES
from tasksheet.dependencies import get_autosave, get_repository, require_connection
from tasksheet.domain import TaskStatus
from tasksheet.errors import (
    ConnectivityError,
    EmptyExtractionError,
    MutationError,
    PersistencePartialFailure,
    RecordNotFoundError,
    WorkbookReadError,
)
from tasksheet.models import FileDetail, FileSummary
from tasksheet.repositories.task_repository import TaskRepository
from tasksheet.services.autosave import DebounceScheduler
from tasksheet.services.importer import build_file_detail, import_workbook, save_changes
import tasksheet.state as state

router = APIRouter(dependencies=[Depends(require_connection)])
logger = logging.getLogger(__name__)


@router.post("/files", response_model=FileDetail, status_code=201)
def upload_file(
    file: UploadFile = File(...),
    repository: TaskRepository = Depends(get_repository),
):
    """Import every task of an uploaded workbook as a new file."""
    filename = os.path.basename(file.filename or "")
    _, ext = os.path.splitext(filename)
    if ext.lower() not in ALLOWED_UPLOAD_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_UPLOAD_EXTENSIONS))
        raise HTTPException(status_code=400, detail=f"Only {allowed} files are supported")

    data = file.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")

    try:
        file_id = import_workbook(repository, data, filename)
        imported = repository.get_file(file_id)
        if imported is None:
            raise HTTPException(status_code=500, detail="Imported file could not be loaded")
        return build_file_detail(imported)

    except HTTPException:
        raise
    except WorkbookReadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmptyExtractionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except PersistencePartialFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected error importing '%s'", filename)
        raise HTTPException(status_code=500, detail=f"Error processing file: {str(e)}")


@router.get("/files", response_model=List[FileSummary])
def list_files(repository: TaskRepository = Depends(get_repository)):
    """List imported files, most recently updated first."""
    try:
        return [FileSummary.from_file(imported) for imported in repository.list_files()]
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/files/{file_id}", response_model=FileDetail)
def get_file(
    file_id: str,
    status: Optional[TaskStatus] = Query(None),
    search: Optional[str] = Query(None),
    repository: TaskRepository = Depends(get_repository),
):
    """A file's tasks grouped by sheet, optionally filtered by status and search text."""
    try:
        imported = repository.get_file(file_id)
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if imported is None:
        raise HTTPException(status_code=404, detail="File not found")
    return build_file_detail(imported, status=status, search=search)


@router.delete("/files/{file_id}")
def delete_file(
    file_id: str,
    repository: TaskRepository = Depends(get_repository),
    autosave: DebounceScheduler = Depends(get_autosave),
):
    autosave.cancel_pending(file_id)
    try:
        repository.delete_file(file_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except MutationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    state.notify_clients()
    return {"status": "success", "message": "File deleted"}


@router.post("/files/{file_id}/save")
def save_file(
    file_id: str,
    repository: TaskRepository = Depends(get_repository),
    autosave: DebounceScheduler = Depends(get_autosave),
):
    """Save now, replacing any pending auto-save for the file."""
    autosave.cancel_pending(file_id)
    try:
        save_changes(repository, file_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except ConnectivityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except MutationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {"status": "success", "message": "Changes saved"}
