"""Renderer-neutral overlay chart description built from store state."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..features.indicators import apply_edits, normalize_to_base100
from ..meta import Meta
from ..utils.time import day_label
from .store import ExperimentSeries, StoreSnapshot


@dataclass(slots=True)
class ValueAxis:
    index: int
    position: str
    split_line: bool
    split_line_color: str
    label_color: str


@dataclass(slots=True)
class ChartSeries:
    id: str
    name: str
    type: str
    y_axis_index: int
    data: List[Optional[float]]
    color: str
    area: bool = False
    bar_width: str | None = None
    opacity: float = 1.0
    smooth: bool = True


@dataclass(slots=True)
class ZoomWindow:
    start: float = 0.0
    end: float = 100.0
    slider: bool = True


@dataclass(slots=True)
class ChartDescription:
    categories: List[str]
    timestamps: List[int]
    y_axes: List[ValueAxis]
    series: List[ChartSeries]
    legend: bool
    grid: Dict[str, int]
    zoom: ZoomWindow = field(default_factory=ZoomWindow)
    theme: Dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


def _chart_series(
    item: ExperimentSeries,
    overrides: Mapping[int, float],
    normalize: bool,
    y_axis_index: int,
) -> ChartSeries:
    data = apply_edits(item.values, overrides)
    if normalize:
        data = normalize_to_base100(data)
    is_bar = item.chart_type == "bar"
    return ChartSeries(
        id=item.id,
        name=item.label,
        type="bar" if is_bar else "line",
        y_axis_index=y_axis_index,
        data=data,
        color=item.color,
        area=item.chart_type == "area",
        bar_width="60%" if is_bar else None,
        opacity=0.6 if is_bar else 1.0,
    )


def build_overlay_chart(
    series: Sequence[ExperimentSeries],
    overrides: Mapping[str, Mapping[int, float]],
    normalize: bool = False,
    dark: bool = True,
) -> ChartDescription | None:
    """Describe the overlay chart for the visible series.

    Returns ``None`` when nothing is visible. The first visible series supplies
    the category axis; no resampling happens here, so series of a different
    length are drawn against those labels as-is. Edits are applied before
    normalization so an edited raw value is what gets rebased.
    """

    visible = [item for item in series if item.visible]
    if not visible:
        return None

    theme = Meta.theme(dark)
    base = visible[0]
    has_left = any(item.y_axis_side == "left" for item in visible)
    has_right = any(item.y_axis_side == "right" for item in visible)

    y_axes: List[ValueAxis] = []
    if has_left:
        y_axes.append(ValueAxis(len(y_axes), "left", True, theme["split_line"], theme["axis_label"]))
    if has_right:
        y_axes.append(ValueAxis(len(y_axes), "right", False, theme["split_line"], theme["axis_label"]))

    chart_series = [
        _chart_series(
            item,
            overrides.get(item.id, {}),
            normalize,
            1 if item.y_axis_side == "right" and has_left else 0,
        )
        for item in visible
    ]

    return ChartDescription(
        categories=[day_label(ts) for ts in base.timestamps],
        timestamps=list(base.timestamps),
        y_axes=y_axes,
        series=chart_series,
        legend=len(visible) > 1,
        grid={"left": 60, "right": 60 if has_right else 20, "top": 40, "bottom": 60},
        theme=theme,
    )


def build_from_snapshot(snapshot: StoreSnapshot, dark: bool = True) -> ChartDescription | None:
    return build_overlay_chart(snapshot.series, snapshot.overrides, snapshot.view.normalize, dark)
