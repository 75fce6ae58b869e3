from __future__ import annotations

import os
import time
from collections.abc import Callable, Generator

import pytest
from fastapi import FastAPI

from tasktracker.gateway.app import create_app
from tasktracker.observability import reset_metrics
from tasktracker.service import TaskService
from tasktracker.store.sql_store import SqlTaskStore


def _wait_until(timeout_s: float, pause_s: float, check: Callable[[], bool]) -> bool:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if check():
            return True
        time.sleep(pause_s)
    return False


def _redis_ping(url: str) -> bool:
    try:
        import redis

        r = redis.Redis.from_url(url)
        return bool(r.ping())
    except Exception:
        return False


@pytest.fixture(scope="session")
def redis_url() -> str:
    """Provide a reachable Redis URL or skip.

    Priority:
    1) REDIS_URL env if reachable
    2) localhost:6379 if reachable
    """
    env_url = os.getenv("REDIS_URL")
    if env_url and _wait_until(5.0, 0.2, lambda: _redis_ping(env_url)):
        return env_url

    local_url = "redis://localhost:6379/0"
    if _wait_until(1.0, 0.2, lambda: _redis_ping(local_url)):
        return local_url

    pytest.skip("Redis not available; set REDIS_URL or start local Redis")


@pytest.fixture(autouse=True)
def _fresh_metrics() -> None:
    reset_metrics()


@pytest.fixture()
def store() -> Generator[SqlTaskStore, None, None]:
    s = SqlTaskStore.from_url("sqlite://")
    s.init_schema()
    yield s
    s.engine.dispose()


@pytest.fixture()
def service(store: SqlTaskStore) -> TaskService:
    return TaskService(store)


@pytest.fixture()
def app(service: TaskService) -> FastAPI:
    return create_app(service)
