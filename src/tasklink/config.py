"""Config loading, scaffolding and writing."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tasklink.contracts.config import TaskLinkConfig
from tasklink.contracts.exceptions import ConfigError

DEFAULT_CONFIG_PATH = "tasklink.json"
_DATA_PATH_DEFAULT = ".tasklink/data.json"


def _resolve_path(value: Path, *, base_dir: Path) -> Path:
    if value.is_absolute():
        return value
    return (base_dir / value).resolve()


def load_config(path: str | Path) -> TaskLinkConfig:
    """Load and validate config from JSON, resolving relative paths against the config directory."""
    config_path = Path(path).expanduser().resolve()

    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
        parsed = TaskLinkConfig.model_validate(raw_payload)
    except OSError as exc:
        raise ConfigError(f"failed reading config file: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in config file: {config_path}") from exc
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc

    return parsed.model_copy(update={"data_path": _resolve_path(parsed.data_path, base_dir=config_path.parent)})


def scaffold_config(
    *,
    auth: str = "env",
    token: str | None = None,
    tracked_tag: str = "#tracked",
    tag_prefix: str = "#todoist",
    data_path: str = _DATA_PATH_DEFAULT,
    include_defaults: bool = False,
) -> dict[str, Any]:
    raw: dict[str, Any] = {"provider": "todoist"}

    if include_defaults or auth != "env":
        raw["auth"] = auth
    if token is not None:
        raw["token"] = token
    if include_defaults or tracked_tag != "#tracked":
        raw["tracked_tag"] = tracked_tag
    if include_defaults or tag_prefix != "#todoist":
        raw["tag_prefix"] = tag_prefix
    if include_defaults or data_path != _DATA_PATH_DEFAULT:
        raw["data_path"] = data_path

    try:
        TaskLinkConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc

    return raw


def write_config(config: dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")
