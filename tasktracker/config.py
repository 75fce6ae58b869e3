from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_HOME = Path.home() / ".tasktracker"
DEFAULT_PAGE_SIZE = 5


@dataclass(slots=True)
class AppConfig:
    database_url: str
    host: str
    port: int
    page_size: int
    base_url: str
    settings_path: Path
    settings_redis_url: str | None
    timeout: float


def _default_database_url() -> str:
    return f"sqlite:///{(DEFAULT_HOME / 'tasks.db').as_posix()}"


def _read_int(raw: str | None, default: int, *, minimum: int = 1) -> int:
    value = (raw or "").strip()
    try:
        parsed = int(value) if value else default
    except Exception:
        parsed = default
    return parsed if parsed >= minimum else default


def _read_float(raw: str | None, default: float) -> float:
    value = (raw or "").strip()
    try:
        parsed = float(value) if value else default
    except Exception:
        parsed = default
    return parsed if parsed > 0 else default


def load_config(env: dict[str, str] | None = None) -> AppConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    settings_path_raw = (e.get("TASKTRACKER_SETTINGS_PATH") or "").strip()
    settings_path = (
        Path(settings_path_raw).expanduser()
        if settings_path_raw
        else DEFAULT_HOME / "settings.json"
    )
    redis_url = (e.get("TASKTRACKER_SETTINGS_REDIS_URL") or "").strip() or None
    return AppConfig(
        database_url=(e.get("TASKTRACKER_DATABASE_URL") or "").strip() or _default_database_url(),
        host=e.get("TASKTRACKER_HOST", "127.0.0.1"),
        port=_read_int(e.get("TASKTRACKER_PORT"), 8000),
        page_size=_read_int(e.get("TASKTRACKER_PAGE_SIZE"), DEFAULT_PAGE_SIZE),
        base_url=e.get("TASKTRACKER_BASE_URL", "http://localhost:8000"),
        settings_path=settings_path,
        settings_redis_url=redis_url,
        timeout=_read_float(e.get("TASKTRACKER_TIMEOUT"), 10.0),
    )


__all__ = ["AppConfig", "load_config", "DEFAULT_PAGE_SIZE"]
