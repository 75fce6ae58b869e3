"""Client-side settings: theme preference and the registered categories and tags.

Settings are loaded once when the client starts and handed explicitly to the
pieces that need them; nothing reads them from module state.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, cast

import redis

from tasktracker.config import AppConfig
from tasktracker.errors import StoreError
from tasktracker.observability import get_json_logger
from tasktracker.taxonomy.codec import is_color
from tasktracker.taxonomy.colors import DEFAULT_CATEGORIES

THEME_KEY = "themeMode"
CATEGORIES_KEY = "taskTrackerCategories"
TAGS_KEY = "taskTrackerTags"

ThemeMode = Literal["light", "dark"]


def _default_categories() -> list[tuple[str, str]]:
    return list(DEFAULT_CATEGORIES)


@dataclass(slots=True)
class ClientSettings:
    theme_mode: ThemeMode = "light"
    categories: list[tuple[str, str]] = field(default_factory=_default_categories)
    tags: list[tuple[str, str]] = field(default_factory=list)

    def toggle_theme(self) -> ThemeMode:
        self.theme_mode = "dark" if self.theme_mode == "light" else "light"
        return self.theme_mode


class SettingsBackend(Protocol):
    """String key/value persistence for client settings."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemorySettingsBackend:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class FileSettingsBackend:
    """All keys in one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def _read(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StoreError(f"cannot read settings file {self._path}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"cannot write settings file {self._path}") from exc


class RedisSettingsBackend:
    """Settings in one Redis hash: key ``{key_prefix}:settings``, one field per setting."""

    def __init__(self, *, url: str, key_prefix: str = "tasktracker") -> None:
        self._redis: redis.Redis = redis.Redis.from_url(url)
        self._key = f"{key_prefix.rstrip(':')}:settings"

    def get(self, key: str) -> str | None:
        try:
            raw = cast(bytes | None, self._redis.hget(self._key, key))
        except redis.exceptions.RedisError as exc:
            raise StoreError(f"settings read failed: {exc}") from exc
        return raw.decode("utf-8") if raw is not None else None

    def set(self, key: str, value: str) -> None:
        try:
            self._redis.hset(self._key, mapping={key: value})
        except redis.exceptions.RedisError as exc:
            raise StoreError(f"settings write failed: {exc}") from exc


def _parse_named_colors(raw: str | None) -> list[tuple[str, str]] | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, list):
        return None
    out: list[tuple[str, str]] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        color = str(item.get("color") or "")
        if name and is_color(color):
            out.append((name, color))
    return out


def _named_colors(pairs: list[tuple[str, str]]) -> list[dict[str, str]]:
    return [{"name": name, "color": color} for name, color in pairs]


class SettingsStore:
    """Load/save contract over a backend; bad stored values fall back to defaults."""

    def __init__(self, backend: SettingsBackend) -> None:
        self._backend = backend
        self._logger = get_json_logger("tasktracker.settings")

    def load(self) -> ClientSettings:
        settings = ClientSettings()
        theme = self._backend.get(THEME_KEY)
        if theme in ("light", "dark"):
            settings.theme_mode = cast(ThemeMode, theme)
        elif theme is not None:
            self._logger.warning(
                "ignoring unknown theme",
                extra={"event": "settings_invalid", "metadata": {"theme": theme}},
            )
        categories = _parse_named_colors(self._backend.get(CATEGORIES_KEY))
        if categories is not None:
            settings.categories = categories
        tags = _parse_named_colors(self._backend.get(TAGS_KEY))
        if tags is not None:
            settings.tags = tags
        return settings

    def save(self, settings: ClientSettings) -> None:
        self._backend.set(THEME_KEY, settings.theme_mode)
        self._backend.set(CATEGORIES_KEY, json.dumps(_named_colors(settings.categories)))
        self._backend.set(TAGS_KEY, json.dumps(_named_colors(settings.tags)))


def open_settings_store(config: AppConfig) -> SettingsStore:
    if config.settings_redis_url:
        return SettingsStore(RedisSettingsBackend(url=config.settings_redis_url))
    return SettingsStore(FileSettingsBackend(config.settings_path))


__all__ = [
    "CATEGORIES_KEY",
    "TAGS_KEY",
    "THEME_KEY",
    "ClientSettings",
    "FileSettingsBackend",
    "InMemorySettingsBackend",
    "RedisSettingsBackend",
    "SettingsBackend",
    "SettingsStore",
    "ThemeMode",
    "open_settings_store",
]
