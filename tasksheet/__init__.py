import logging
from typing import Optional

from fastapi import FastAPI

from tasksheet.config import AUTO_CREATE_TABLES, AUTO_SAVE_DELAY_SECONDS, DATABASE_URL
from tasksheet.db.session import make_engine
from tasksheet.repositories.task_repository import TaskRepository
from tasksheet.routes import register_routes
from tasksheet.services.autosave import DebounceScheduler
from tasksheet.services.importer import initialize_store

logger = logging.getLogger(__name__)


def create_app(
    database_url: Optional[str] = None,
    auto_save_delay: Optional[float] = None,
    auto_create_tables: Optional[bool] = None,
) -> FastAPI:
    application = FastAPI(title="Tasksheet")

    engine = make_engine(database_url or DATABASE_URL)
    application.state.repository = TaskRepository(engine)
    application.state.autosave = DebounceScheduler(
        AUTO_SAVE_DELAY_SECONDS if auto_save_delay is None else auto_save_delay
    )
    if auto_create_tables is None:
        auto_create_tables = AUTO_CREATE_TABLES

    register_routes(application)

    @application.on_event("startup")
    async def startup_event():
        status = initialize_store(application.state.repository, auto_create_tables)
        logger.info("Store status: %s", status)

    @application.on_event("shutdown")
    async def shutdown_event():
        pending = application.state.autosave.pending_keys()
        application.state.autosave.cancel_all()
        # Flush what the cancelled timers would have saved.
        for file_id in pending:
            try:
                application.state.repository.save_all_changes(file_id)
            except Exception as exc:
                logger.warning("Failed to save %s on shutdown: %s", file_id, exc)
        engine.dispose()

    return application
