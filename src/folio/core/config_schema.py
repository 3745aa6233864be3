"""Pydantic models for config validation.

``Config.validated()`` returns a typed ``FolioConfig``; dict-based
``Config.get`` keeps working unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    log_dir: Path | None = None

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class StorageConfig(BaseModel):
    """Where and how the ledger snapshot is written."""

    key: str = "portfolio.json"
    compress: bool = False


class SchedulerConfig(BaseModel):
    """Cadences for the simulated tick loop and the real-quote refresh.

    ``refresh_seconds`` of 0 disables the periodic real refresh; it can
    still be triggered on demand.
    """

    tick_seconds: float = Field(default=5.0, gt=0)
    refresh_seconds: float = Field(default=0.0, ge=0)


class SimulatorConfig(BaseModel):
    """Random-walk settings for synthetic history and the benchmark."""

    history_days: int = Field(default=90, ge=0)
    benchmark_days: int = Field(default=90, ge=0)
    benchmark_start: float = Field(default=4500.0, gt=0)
    seed: int | None = None


class GatewayConfig(BaseModel):
    """Quote gateway connection settings."""

    enabled: bool = True
    base_url: str = "https://query1.finance.yahoo.com"
    timeout: float = Field(default=10.0, gt=0)
    user_agent: str = "Mozilla/5.0"


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    file: str | None = None


class FolioConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.folio-data"))
    storage: StorageConfig = StorageConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    simulator: SimulatorConfig = SimulatorConfig()
    gateway: GatewayConfig = GatewayConfig()
    logging: LoggingConfig = LoggingConfig()
