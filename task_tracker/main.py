import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .database import close_db, get_db, init_db, make_engine
from .errors import NotFound, StorageError, ValidationError
from .logging_setup import setup_logging
from .schemas import (
    HealthResponse,
    TaskCreate,
    TaskEnvelope,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from .store import TaskStore

logger = logging.getLogger(__name__)

ENDPOINTS = (
    "GET    /api/tasks",
    "GET    /api/tasks/{id}",
    "POST   /api/tasks",
    "PUT    /api/tasks/{id}",
    "DELETE /api/tasks/{id}",
    "GET    /api/health",
)


def get_store(db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = make_engine(settings.database_url)
        app.state.engine = engine
        app.state.session_factory = init_db(engine)
        logger.info("%s started, endpoints: %s", settings.app_name, ", ".join(ENDPOINTS))
        try:
            yield
        finally:
            close_db(engine)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.metrics_enabled:
        Instrumentator(registry=CollectorRegistry()).instrument(app).expose(app, endpoint="/metrics")

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound):
        return _error(status.HTTP_404_NOT_FOUND, "task not found")

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        # A non-numeric id can never name a row.
        if any(err.get("loc", ())[:1] == ("path",) for err in exc.errors()):
            return _error(status.HTTP_404_NOT_FOUND, "task not found")
        logger.info("%s %s invalid body: %s", request.method, request.url.path, exc.errors())
        return _error(status.HTTP_400_BAD_REQUEST, "invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return _error(status.HTTP_404_NOT_FOUND, "route not found", path=request.url.path)
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


def _register_routes(app: FastAPI) -> None:
    @app.get("/api/tasks", response_model=TaskListResponse)
    def list_tasks(store: TaskStore = Depends(get_store)):
        tasks = [TaskResponse.model_validate(t) for t in store.list()]
        return TaskListResponse(data=tasks, count=len(tasks))

    @app.get("/api/tasks/{task_id}", response_model=TaskEnvelope, response_model_exclude_none=True)
    def get_task(task_id: int, store: TaskStore = Depends(get_store)):
        return TaskEnvelope(data=TaskResponse.model_validate(store.get(task_id)))

    @app.post(
        "/api/tasks",
        response_model=TaskEnvelope,
        response_model_exclude_none=True,
        status_code=status.HTTP_201_CREATED,
    )
    def create_task(body: Optional[TaskCreate] = None, store: TaskStore = Depends(get_store)):
        body = body or TaskCreate()
        task = store.create(body.title, description=body.description, priority=body.priority)
        return TaskEnvelope(message="Task created", data=TaskResponse.model_validate(task))

    @app.put("/api/tasks/{task_id}", response_model=TaskEnvelope, response_model_exclude_none=True)
    def update_task(task_id: int, body: TaskUpdate, store: TaskStore = Depends(get_store)):
        task = store.update(task_id, body.to_patch())
        return TaskEnvelope(message="Task updated", data=TaskResponse.model_validate(task))

    @app.delete("/api/tasks/{task_id}", response_model=TaskEnvelope, response_model_exclude_none=True)
    def delete_task(task_id: int, store: TaskStore = Depends(get_store)):
        task = store.delete(task_id)
        return TaskEnvelope(message="Task deleted", data=TaskResponse.model_validate(task))

    @app.get("/api/health", response_model=HealthResponse)
    def health():
        return HealthResponse(message="API is running", timestamp=datetime.now(timezone.utc))


app = create_app()


def main() -> None:
    import uvicorn

    settings = app.state.settings
    setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
