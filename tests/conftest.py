"""Shared test fixtures for tasklink tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from tasklink.contracts.config import TaskLinkConfig


@pytest.fixture
def config(tmp_path: Path) -> TaskLinkConfig:
    """A config whose plugin data lives under the test's tmp dir."""
    return TaskLinkConfig(data_path=tmp_path / "data.json")


@pytest.fixture
def config_file(tmp_path: Path) -> Callable[..., Path]:
    """Write a tasklink.json into tmp_path and return its path."""

    def _write(**overrides: Any) -> Path:
        payload: dict[str, Any] = {"provider": "todoist", "data_path": "state/data.json"}
        payload.update(overrides)
        path = tmp_path / "tasklink.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
