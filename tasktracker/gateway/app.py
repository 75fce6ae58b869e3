from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker.config import AppConfig, load_config
from tasktracker.errors import StoreError, TaskTrackerError
from tasktracker.models.task import TaskCreate, TaskQuery, TaskUpdate
from tasktracker.observability import (
    configure_uvicorn_logging,
    get_json_logger,
    get_metrics,
    use_request_context,
)
from tasktracker.service import TaskService
from tasktracker.store.sql_store import SqlTaskStore


def _describe_request_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    msg = str(first.get("msg", "invalid value"))
    if loc == ["title"]:
        return "Title is required"
    return f"Invalid {'.'.join(loc)}: {msg}" if loc else msg


def create_app(service: TaskService) -> FastAPI:
    app = FastAPI(title="tasktracker")
    # Configure uvicorn logging at app creation to avoid import-time side effects
    configure_uvicorn_logging()
    logger = get_json_logger("tasktracker.gateway")
    metrics = get_metrics()

    # ----------------------------
    # Error mapping
    # ----------------------------

    @app.exception_handler(TaskTrackerError)
    async def _tasktracker_error(request: Request, exc: TaskTrackerError) -> JSONResponse:
        level = logger.error if exc.status_code >= 500 else logger.warning
        level(
            "request failed",
            extra={
                "event": "api_error",
                "status_code": exc.status_code,
                "attributes": {"error": exc.message, "cause": repr(exc.__cause__)[:200]},
            },
        )
        metrics.increment(
            "api_errors", {"path": request.url.path, "status": str(exc.status_code)}
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _describe_request_error(exc)
        logger.warning(
            "request rejected",
            extra={"event": "api_error", "status_code": 400, "attributes": {"error": message}},
        )
        metrics.increment("api_errors", {"path": request.url.path, "status": "400"})
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Covers /ready failures and unknown routes so every error body has the same shape
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled error",
            exc_info=exc,
            extra={"event": "api_error", "status_code": 500},
        )
        metrics.increment("api_errors", {"path": request.url.path, "status": "500"})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.middleware("http")
    async def _request_context(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        started = time.perf_counter()
        with use_request_context(request_id, request.method, request.url.path):
            response = await call_next(request)
            duration_ms = (time.perf_counter() - started) * 1000.0
            logger.info(
                "request",
                extra={
                    "event": "api_request",
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )
        metrics.increment("api_requests", {"method": request.method})
        response.headers["X-Request-ID"] = request_id
        return response

    # ----------------------------
    # Health checks
    # ----------------------------

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/ready")
    async def ready() -> dict[str, str]:
        try:
            await asyncio.to_thread(service.ping)
            return {"status": "ok"}
        except StoreError as exc:
            logger.error("store not ready", extra={"event": "api_error", "path": "ready"})
            metrics.increment("ready_errors", {})
            raise HTTPException(status_code=503, detail="store not ready") from exc

    # ----------------------------
    # Task CRUD
    # ----------------------------

    # Store calls block, so they run on worker threads and keep the loop free

    @app.get("/tasks")
    async def list_tasks(
        status: str | None = None,
        category: str | None = None,
        priority: str | None = None,
    ) -> list[dict[str, Any]]:
        query = TaskQuery.from_params(status=status, category=category, priority=priority)
        try:
            tasks = await asyncio.to_thread(lambda: service.list_tasks(query))
        except StoreError as exc:
            raise StoreError("Failed to fetch tasks") from exc
        return [t.to_wire() for t in tasks]

    @app.get("/tasks/{task_id}")
    async def get_task(task_id: str) -> dict[str, Any]:
        try:
            task = await asyncio.to_thread(lambda: service.get_task(task_id))
        except StoreError as exc:
            raise StoreError("Failed to fetch task") from exc
        return task.to_wire()

    @app.post("/tasks", status_code=201)
    async def create_task(payload: TaskCreate) -> dict[str, Any]:
        try:
            task = await asyncio.to_thread(lambda: service.create_task(payload))
        except StoreError as exc:
            raise StoreError("Failed to create task") from exc
        return task.to_wire()

    @app.put("/tasks/{task_id}")
    async def update_task(task_id: str, payload: TaskUpdate) -> dict[str, Any]:
        try:
            task = await asyncio.to_thread(lambda: service.update_task(task_id, payload))
        except StoreError as exc:
            raise StoreError("Failed to update task") from exc
        return task.to_wire()

    @app.delete("/tasks/{task_id}")
    async def delete_task(task_id: str) -> dict[str, str]:
        try:
            await asyncio.to_thread(lambda: service.delete_task(task_id))
        except StoreError as exc:
            raise StoreError("Failed to delete task") from exc
        return {"message": "Task deleted successfully"}

    return app


def build_app(config: AppConfig | None = None) -> FastAPI:
    """App over the SQL store named by ``TASKTRACKER_DATABASE_URL``; creates the schema."""
    cfg = config or load_config()
    store = SqlTaskStore.from_url(cfg.database_url)
    store.init_schema()
    return create_app(TaskService(store))


__all__ = ["build_app", "create_app"]
