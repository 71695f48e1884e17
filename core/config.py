from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, cast

from pydantic import BaseModel, Field, field_validator

from core.contracts import Level

DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024  # 2MB
DEFAULT_BACKUP_COUNT = 2


def _check_level(value: str) -> str:
    return Level.from_name(value).name


class AppCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    name: str = "logsink"
    env: str = "dev"


class LoggingCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    level: str = "INFO"
    console: bool = True
    diagnostics_level: str = "WARNING"
    diagnostics_json: bool = False

    @field_validator("level", "diagnostics_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        return _check_level(value)


class SinkConfig(BaseModel):
    """Settings for one rotating file sink; fixed for the sink's lifetime."""

    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid", "frozen": True}

    path: Path
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    backup_count: int = Field(default=DEFAULT_BACKUP_COUNT, ge=0)
    persistent_handle: bool = True
    encoding: str = "utf-8"
    fsync: bool = False


class Config(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    app: AppCfg = Field(default_factory=AppCfg)
    logging: LoggingCfg = Field(default_factory=LoggingCfg)
    sink: SinkConfig


def _read_yaml(path: Path) -> dict[str, Any]:
    """Safe YAML read; returns {} if file missing/empty."""
    import yaml  # lazy import

    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data or {}


def load_config(base_dir: str | Path) -> Config:
    """Load ./config/base.yaml; a relative sink path is anchored at ``base_dir``."""

    base_path = Path(base_dir)
    base_yaml = base_path / "config" / "base.yaml"
    data = _read_yaml(base_yaml)
    if not data:
        msg = f"Missing or empty config file: {base_yaml}"
        raise FileNotFoundError(msg)

    sink = data.get("sink")
    if isinstance(sink, dict) and sink.get("path"):
        sink_path = Path(sink["path"]).expanduser()
        if not sink_path.is_absolute():
            sink["path"] = base_path / sink_path

    return cast(Config, Config.model_validate(data))
