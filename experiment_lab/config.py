"""Configuration loading utilities for the Experiment Lab engine."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .utils.time import DAY_MS

DEFAULT_PALETTE = [
    "#10b981",
    "#3b82f6",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
    "#84cc16",
]


class IndicatorSettings(BaseModel):
    sma_window: int = Field(20, ge=1)
    ema_window: int = Field(20, ge=1)
    rsi_period: int = Field(14, ge=1)


class PaletteSettings(BaseModel):
    colors: List[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE), min_length=1)


class TableSettings(BaseModel):
    rows_per_page: int = Field(40, ge=1)


class AlignmentSettings(BaseModel):
    enabled: bool = False
    max_gap_ms: int = Field(3 * DAY_MS, ge=0)


class SparklineSettings(BaseModel):
    top_n: int = Field(10, ge=0)
    span_ms: int = Field(7 * DAY_MS, gt=0)


class Settings(BaseModel):
    indicators: IndicatorSettings = Field(default_factory=IndicatorSettings)
    palette: PaletteSettings = Field(default_factory=PaletteSettings)
    table: TableSettings = Field(default_factory=TableSettings)
    alignment: AlignmentSettings = Field(default_factory=AlignmentSettings)
    sparklines: SparklineSettings = Field(default_factory=SparklineSettings)


_ENV_OVERRIDES = {
    "LAB_SMA_WINDOW": "sma_window",
    "LAB_EMA_WINDOW": "ema_window",
    "LAB_RSI_PERIOD": "rsi_period",
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def default_settings() -> Settings:
    return Settings()


def load_settings(path: Path | str = Path("configs/settings.yaml")) -> Settings:
    """Load engine settings from YAML and environment variables."""
    load_dotenv()
    raw = _load_yaml(Path(path))

    indicators: Dict[str, Any] = dict(raw.get("indicators") or {})
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            indicators[field_name] = value
    raw["indicators"] = indicators
    return Settings.model_validate(raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
