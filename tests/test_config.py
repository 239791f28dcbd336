# tests/test_config.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from task_tracker.config import Settings
from task_tracker.logging_setup import setup_logging

_VARS = (
    "TASKS_APP_NAME",
    "TASKS_DATABASE_URL",
    "TASKS_HOST",
    "TASKS_PORT",
    "PORT",
    "TASKS_LOG_LEVEL",
    "TASKS_LOG_DIR",
    "TASKS_CORS_ORIGINS",
    "TASKS_METRICS_ENABLED",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    s = Settings.from_env()
    assert s.database_url == "sqlite:///./database.sqlite"
    assert s.port == 3000
    assert s.log_level == "INFO"
    assert s.log_dir is None
    assert s.cors_origins == ("*",)
    assert s.metrics_enabled is True


def test_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("TASKS_DATABASE_URL", "sqlite:///:memory:")
    clean_env.setenv("TASKS_PORT", "8081")
    clean_env.setenv("TASKS_LOG_LEVEL", "debug")
    clean_env.setenv("TASKS_LOG_DIR", str(tmp_path))
    clean_env.setenv("TASKS_CORS_ORIGINS", "http://a.test, http://b.test")
    clean_env.setenv("TASKS_METRICS_ENABLED", "off")

    s = Settings.from_env()
    assert s.database_url == "sqlite:///:memory:"
    assert s.port == 8081
    assert s.log_level == "DEBUG"
    assert s.log_dir == tmp_path
    assert s.cors_origins == ("http://a.test", "http://b.test")
    assert s.metrics_enabled is False


def test_plain_port_and_bad_values(clean_env) -> None:
    clean_env.setenv("PORT", "5000")
    assert Settings.from_env().port == 5000

    clean_env.setenv("TASKS_PORT", "not-a-number")
    assert Settings.from_env().port == 5000


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging(level="WARNING", log_dir=tmp_path)
        logging.getLogger("task_tracker.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in (tmp_path / "task_tracker.log").read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
