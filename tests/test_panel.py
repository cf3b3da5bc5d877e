"""Tests for the panel controller orchestration."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from experiment_lab.config import AlignmentSettings, IndicatorSettings, Settings, TableSettings
from experiment_lab.services.panel import PanelController, parse_cell_text
from experiment_lab.services.snapshot import snapshot_from_payload
from experiment_lab.services.store import ExperimentStore

DAY_MS = 86_400_000


def make_payload(candles: int = 6) -> Dict[str, Any]:
    return {
        "ohlc": {
            "bitcoin": [
                [idx * DAY_MS, 100.0 + idx, 101.0 + idx, 99.0 + idx, 100.0 + idx]
                for idx in range(candles)
            ]
        },
        "fearGreed": [
            {"timestamp": str(2 * 86_400 + 3_600), "value": "70"},
            {"timestamp": "3600", "value": "30"},
        ],
        "global": {"market_cap_percentage": {"btc": 50.0}},
        "markets": [{"id": "ethereum", "symbol": "eth", "sparkline_in_7d": {"price": [1, 2, 3]}}],
    }


def make_controller(**settings_kwargs: Any) -> PanelController:
    settings = Settings(
        indicators=IndicatorSettings(sma_window=2, ema_window=3, rsi_period=2),
        **settings_kwargs,
    )
    store = ExperimentStore(settings)
    snapshot = snapshot_from_payload(make_payload(), as_of_ms=6 * DAY_MS)
    return PanelController(store, snapshot, settings)


def test_available_sources_reflect_snapshot() -> None:
    controller = make_controller()
    flags = {option.key: option.available for option in controller.available_sources()}
    assert flags["ohlc_close"] is True
    assert flags["ohlc_volume"] is False
    assert flags["fear_greed"] is True
    assert flags["btc_dominance"] is True
    assert flags["sma"] is True


def test_duplicate_sources_are_refused() -> None:
    controller = make_controller()
    first = controller.add_source("ohlc_close")
    assert first is not None
    assert controller.add_source("ohlc_close") is None
    assert controller.store.series_count == 1
    added = {option.key: option.added for option in controller.available_sources()}
    assert added["ohlc_close"] is True
    assert added["ohlc_high"] is False


def test_unknown_or_unavailable_sources_add_nothing() -> None:
    controller = make_controller()
    assert controller.add_source("ohlc_volume") is None
    assert controller.add_source("made_up") is None
    assert controller.add_source("sparkline:dogecoin") is None
    assert controller.store.series_count == 0


def test_indicator_series_are_labelled_with_their_window() -> None:
    controller = make_controller()
    sid = controller.add_source("sma")
    series = controller.store.get_series(sid)
    assert series.label == "SMA(2)"
    assert series.values[0] is None
    assert series.values[1] == pytest.approx(100.5)


def test_parameter_change_recomputes_in_place_and_keeps_edits() -> None:
    controller = make_controller()
    sid = controller.add_source("sma")
    controller.store.toggle_series(sid)
    controller.store.edit_cell(sid, 4, 999.0)
    before = controller.store.get_series(sid)

    assert controller.set_indicator_param("sma", 3)
    after = controller.store.get_series(sid)
    assert after.id == before.id
    assert after.color == before.color
    assert after.visible is False
    assert after.label == "SMA(3)"
    assert after.values[:2] == [None, None]
    assert after.values[2] == pytest.approx(101.0)
    assert controller.store.effective_value(sid, 4) == 999.0
    assert controller.store.view.sma_window == 3


def test_invalid_parameter_changes_are_rejected() -> None:
    controller = make_controller()
    assert not controller.set_indicator_param("sma", 0)
    assert not controller.set_indicator_param("macd", 5)
    assert controller.store.view.sma_window == 2


def test_cell_text_commit_and_revert() -> None:
    controller = make_controller()
    sid = controller.add_source("ohlc_close")

    result = controller.commit_cell_text(sid, 1, " 123.5 ")
    assert result.committed is True
    assert result.display == "123.50"

    result = controller.commit_cell_text(sid, 1, "abc")
    assert result.committed is False
    assert result.display == "123.50"
    assert controller.store.edit_count == 1

    result = controller.commit_cell_text(sid, 99, "5")
    assert result.committed is False
    assert result.display == "—"


@pytest.mark.parametrize("text", ["", "  ", "abc", "nan", "inf", None])
def test_parse_cell_text_rejects_non_numbers(text: Any) -> None:
    assert parse_cell_text(text) is None


def test_sparkline_sources_can_be_added() -> None:
    controller = make_controller()
    [spark] = controller.sparkline_sources()
    sid = controller.add_source(spark.key)
    series = controller.store.get_series(sid)
    assert series.label == "ETH 7d"
    assert series.source_key == "sparkline:ethereum"
    assert series.timestamps[-1] == 6 * DAY_MS


def test_alignment_maps_new_series_onto_price_timeline() -> None:
    controller = make_controller(alignment=AlignmentSettings(enabled=True, max_gap_ms=DAY_MS))
    controller.add_source("ohlc_close")
    sid = controller.add_source("fear_greed")
    series = controller.store.get_series(sid)
    assert series.timestamps == [idx * DAY_MS for idx in range(6)]
    assert series.values == [30.0, 30.0, 70.0, 70.0, None, None]


def test_chart_and_table_views() -> None:
    controller = make_controller(table=TableSettings(rows_per_page=4))
    assert controller.chart() is None
    controller.add_source("ohlc_close")
    controller.add_source("fear_greed")

    chart = controller.chart()
    assert [axis.position for axis in chart.y_axes] == ["left", "right"]

    table = controller.table()
    assert len(table.rows) == 4
    assert table.remaining == 2
    controller.show_more_rows()
    assert controller.table().remaining == 0

    controller.clear()
    assert controller.visible_rows == 4
    assert controller.table().rows == []


def test_recompute_on_fewer_candles_keeps_undo_safe() -> None:
    controller = make_controller()
    sid = controller.add_source("sma")
    controller.store.edit_cell(sid, 5, 50.0)
    controller.store.edit_cell(sid, 1, 60.0)

    controller.update_snapshot(snapshot_from_payload(make_payload(candles=3), as_of_ms=3 * DAY_MS))
    assert controller.set_indicator_param("sma", 3)

    series = controller.store.get_series(sid)
    assert len(series.values) == 3
    assert controller.store.overrides == {sid: {1: 60.0}}
    assert controller.store.effective_value(sid, 5) is None

    assert controller.undo() is True
    assert controller.store.edit_count == 0
    assert controller.undo() is False
    assert controller.commit_cell_text(sid, 5, "1").committed is False
