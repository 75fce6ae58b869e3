from __future__ import annotations

import json
import uuid
from pathlib import Path

import pytest

from tasktracker.config import load_config
from tasktracker.errors import StoreError
from tasktracker.settings.store import (
    CATEGORIES_KEY,
    TAGS_KEY,
    THEME_KEY,
    ClientSettings,
    FileSettingsBackend,
    InMemorySettingsBackend,
    RedisSettingsBackend,
    SettingsStore,
    open_settings_store,
)
from tasktracker.taxonomy import DEFAULT_CATEGORIES


def test_empty_backend_loads_defaults() -> None:
    settings = SettingsStore(InMemorySettingsBackend()).load()

    assert settings.theme_mode == "light"
    assert settings.categories == list(DEFAULT_CATEGORIES)


def test_save_then_load_uses_stable_keys() -> None:
    backend = InMemorySettingsBackend()
    store = SettingsStore(backend)
    settings = ClientSettings(theme_mode="dark", categories=[("Garden", "#8bc34a")])

    store.save(settings)

    assert backend.values[THEME_KEY] == "dark"
    assert json.loads(backend.values[CATEGORIES_KEY]) == [{"name": "Garden", "color": "#8bc34a"}]
    loaded = store.load()
    assert loaded.theme_mode == "dark"
    assert loaded.categories == [("Garden", "#8bc34a")]


def test_registered_tags_are_saved_and_loaded() -> None:
    backend = InMemorySettingsBackend()
    store = SettingsStore(backend)

    assert store.load().tags == []

    store.save(ClientSettings(tags=[("focus", "#111111"), ("home", "#aabbcc")]))

    assert json.loads(backend.values[TAGS_KEY]) == [
        {"name": "focus", "color": "#111111"},
        {"name": "home", "color": "#aabbcc"},
    ]
    assert store.load().tags == [("focus", "#111111"), ("home", "#aabbcc")]


def test_bad_values_fall_back_to_defaults() -> None:
    backend = InMemorySettingsBackend({THEME_KEY: "sepia", CATEGORIES_KEY: "{not json"})

    settings = SettingsStore(backend).load()

    assert settings.theme_mode == "light"
    assert settings.categories == list(DEFAULT_CATEGORIES)


def test_invalid_category_entries_are_skipped() -> None:
    raw = json.dumps(
        [
            {"name": "Garden", "color": "#8bc34a"},
            {"name": "", "color": "#000000"},
            {"name": "Nope", "color": "green"},
            "junk",
        ]
    )
    settings = SettingsStore(InMemorySettingsBackend({CATEGORIES_KEY: raw})).load()

    assert settings.categories == [("Garden", "#8bc34a")]


def test_toggle_theme_flips_between_modes() -> None:
    settings = ClientSettings()

    assert settings.toggle_theme() == "dark"
    assert settings.toggle_theme() == "light"


def test_file_backend_round_trip_and_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "cfg" / "settings.json"
    store = SettingsStore(FileSettingsBackend(path))

    store.save(ClientSettings(theme_mode="dark"))
    assert SettingsStore(FileSettingsBackend(path)).load().theme_mode == "dark"

    path.write_text("not json", encoding="utf-8")
    assert store.load().theme_mode == "light"


def test_file_backend_write_failure_is_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    backend = FileSettingsBackend(blocker / "settings.json")

    with pytest.raises(StoreError):
        backend.set(THEME_KEY, "dark")


def test_open_settings_store_uses_file_without_redis_url(tmp_path: Path) -> None:
    file_cfg = load_config(
        {
            "TASKTRACKER_SETTINGS_PATH": str(tmp_path / "s.json"),
            "TASKTRACKER_SETTINGS_REDIS_URL": "",
        }
    )
    store = open_settings_store(file_cfg)
    store.save(ClientSettings(theme_mode="dark"))

    assert (tmp_path / "s.json").exists()


def test_redis_backend_round_trip(redis_url: str) -> None:
    prefix = f"testsettings:{uuid.uuid4()}"
    store = SettingsStore(RedisSettingsBackend(url=redis_url, key_prefix=prefix))

    store.save(ClientSettings(theme_mode="dark", categories=[("Work", "#4caf50")]))
    fresh = SettingsStore(RedisSettingsBackend(url=redis_url, key_prefix=prefix)).load()

    assert fresh.theme_mode == "dark"
    assert fresh.categories == [("Work", "#4caf50")]


def test_redis_backend_unreachable_is_store_error() -> None:
    backend = RedisSettingsBackend(url="redis://127.0.0.1:1/0")

    with pytest.raises(StoreError):
        backend.get(THEME_KEY)
