from fastapi import FastAPI

from tasksheet.routes.files import router as files_router
from tasksheet.routes.tasks import router as tasks_router
from tasksheet.routes.events import router as events_router
from tasksheet.routes.health import router as health_router


def register_routes(app: FastAPI):
    app.include_router(files_router, prefix="/api")
    app.include_router(tasks_router, prefix="/api")
    app.include_router(events_router)
    app.include_router(health_router)
