"""Tests for settings loading."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from experiment_lab import config
from experiment_lab.services.store import ExperimentStore

ROOT = Path(__file__).resolve().parents[1]


def test_repository_settings_file_loads() -> None:
    settings = config.load_settings(ROOT / "configs" / "settings.yaml")
    assert settings.indicators.rsi_period == 14
    assert settings.table.rows_per_page == 40
    assert len(settings.palette.colors) >= 1


def test_env_overrides_indicator_windows(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("indicators:\n  sma_window: 10\n", encoding="utf-8")
    monkeypatch.setenv("LAB_EMA_WINDOW", "9")
    monkeypatch.delenv("LAB_SMA_WINDOW", raising=False)
    monkeypatch.delenv("LAB_RSI_PERIOD", raising=False)

    settings = config.load_settings(path)
    assert settings.indicators.sma_window == 10
    assert settings.indicators.ema_window == 9
    assert settings.indicators.rsi_period == 14

    store = ExperimentStore(settings)
    assert (store.view.sma_window, store.view.ema_window) == (10, 9)


def test_empty_file_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LAB_SMA_WINDOW", "LAB_EMA_WINDOW", "LAB_RSI_PERIOD"):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    assert config.load_settings(path) == config.default_settings()


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        config.load_settings(tmp_path / "absent.yaml")


def test_invalid_window_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("indicators:\n  rsi_period: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        config.load_settings(path)


def test_get_settings_reads_default_path_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(ROOT)
    config.get_settings.cache_clear()
    try:
        first = config.get_settings()
        assert first is config.get_settings()
        assert first.sparklines.top_n == 10
    finally:
        config.get_settings.cache_clear()
