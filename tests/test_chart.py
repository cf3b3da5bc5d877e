"""Tests for the overlay chart builder."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from experiment_lab.services.chart import build_from_snapshot, build_overlay_chart
from experiment_lab.services.store import ExperimentStore, SeriesSpec

DAY_MS = 86_400_000
JAN_1_2024 = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)


def add(
    store: ExperimentStore,
    label: str,
    values: List[Optional[float]],
    side: str = "left",
    kind: str = "line",
) -> str:
    series_id = store.add_series(
        SeriesSpec(
            label=label,
            source_key=label.lower(),
            timestamps=[JAN_1_2024 + idx * DAY_MS for idx in range(len(values))],
            values=values,
            y_axis_side=side,  # type: ignore[arg-type]
            chart_type=kind,  # type: ignore[arg-type]
        )
    )
    assert series_id is not None
    return series_id


def test_no_visible_series_returns_none() -> None:
    store = ExperimentStore()
    assert build_from_snapshot(store.snapshot()) is None
    sid = add(store, "Price", [1.0, 2.0])
    store.toggle_series(sid)
    assert build_from_snapshot(store.snapshot()) is None


def test_left_and_right_series_get_two_axes_until_right_is_removed() -> None:
    store = ExperimentStore()
    add(store, "Price", [100.0, 101.0, 102.0], side="left")
    sentiment = add(store, "Sentiment", [40.0, 50.0, 60.0], side="right")

    chart = build_from_snapshot(store.snapshot())
    assert [axis.position for axis in chart.y_axes] == ["left", "right"]
    assert [series.y_axis_index for series in chart.series] == [0, 1]
    assert chart.grid["right"] == 60
    assert chart.legend is True

    store.remove_series(sentiment)
    chart = build_from_snapshot(store.snapshot())
    assert [axis.position for axis in chart.y_axes] == ["left"]
    assert chart.grid["right"] == 20
    assert chart.legend is False


def test_right_only_series_collapse_onto_first_axis() -> None:
    store = ExperimentStore()
    add(store, "RSI", [30.0, 70.0], side="right")
    chart = build_from_snapshot(store.snapshot())
    assert [axis.position for axis in chart.y_axes] == ["right"]
    assert chart.series[0].y_axis_index == 0


def test_edits_are_applied_before_normalization() -> None:
    store = ExperimentStore()
    sid = add(store, "Price", [50.0, 100.0, 25.0])
    store.edit_cell(sid, 0, 100.0)
    store.toggle_normalize()

    chart = build_from_snapshot(store.snapshot())
    assert chart.series[0].data == pytest.approx([100.0, 100.0, 25.0])
    assert store.get_series(sid).values == [50.0, 100.0, 25.0]


def test_categories_come_from_first_visible_series() -> None:
    store = ExperimentStore()
    hidden = add(store, "Hidden", [1.0, 2.0, 3.0, 4.0])
    add(store, "Short", [5.0, 6.0])
    store.toggle_series(hidden)

    chart = build_from_snapshot(store.snapshot())
    assert chart.categories == ["1/1", "1/2"]
    assert chart.timestamps == [JAN_1_2024, JAN_1_2024 + DAY_MS]


def test_series_styling_hints_follow_chart_kind() -> None:
    store = ExperimentStore()
    add(store, "Volume", [1.0, 2.0], side="right", kind="bar")
    add(store, "Fear", [3.0, 4.0], side="right", kind="area")

    chart = build_overlay_chart(store.series, store.overrides, normalize=False, dark=False)
    bar, area = chart.series
    assert (bar.type, bar.bar_width, bar.opacity, bar.area) == ("bar", "60%", 0.6, False)
    assert (area.type, area.area) == ("line", True)
    assert chart.theme["axis_label"] == "#64748b"
    assert chart.as_dict()["zoom"] == {"start": 0.0, "end": 100.0, "slider": True}
