"""Mutable state of one Experiment Lab session.

The store owns every series, the per-cell override map, the chronological
edit history used for undo, and the view settings. Mutators never raise on
bad ids or indices: they log, leave state untouched and report ``False`` (or
``None``) so an interactive session survives user mistakes.
"""
from __future__ import annotations

import copy
import itertools
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence

from ..config import Settings, default_settings
from ..features.indicators import apply_edits
from ..utils.logging import get_logger
from .sources import AxisSide, ChartKind

logger = get_logger(__name__)

Overrides = Dict[str, Dict[int, float]]
Listener = Callable[["ExperimentStore"], None]


@dataclass(slots=True)
class SeriesSpec:
    """Everything needed to add a series; the store assigns id (and colour if unset)."""

    label: str
    source_key: str
    timestamps: Sequence[int]
    values: Sequence[Optional[float]]
    chart_type: ChartKind = "line"
    y_axis_side: AxisSide = "left"
    color: str | None = None
    visible: bool = True


@dataclass(slots=True)
class ExperimentSeries:
    id: str
    label: str
    source_key: str
    color: str
    chart_type: ChartKind
    y_axis_side: AxisSide
    visible: bool
    timestamps: List[int]
    values: List[Optional[float]]


@dataclass(frozen=True, slots=True)
class EditRecord:
    series_id: str
    index: int
    previous_value: Optional[float]
    new_value: float


@dataclass(slots=True)
class ViewSettings:
    normalize: bool = False
    show_table: bool = False
    sma_window: int = 20
    ema_window: int = 20
    rsi_period: int = 14


@dataclass(slots=True)
class StoreSnapshot:
    """Detached copy of the store state handed to read-only consumers."""

    series: List[ExperimentSeries] = field(default_factory=list)
    overrides: Overrides = field(default_factory=dict)
    history: List[EditRecord] = field(default_factory=list)
    view: ViewSettings = field(default_factory=ViewSettings)


def _positive_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        numeric = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if numeric != value or numeric < 1:
        return None
    return numeric


class ExperimentStore:
    """Single owner of series, overrides, edit history and view toggles."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or default_settings()
        self._palette: List[str] = list(settings.palette.colors)
        self._color_cycle = itertools.cycle(self._palette)
        self._ids = itertools.count(1)
        self._series: List[ExperimentSeries] = []
        self._overrides: Overrides = {}
        self._history: List[EditRecord] = []
        self._listeners: List[Listener] = []
        self.view = ViewSettings(
            sma_window=settings.indicators.sma_window,
            ema_window=settings.indicators.ema_window,
            rsi_period=settings.indicators.rsi_period,
        )

    # ------------------------------------------------------------------
    # change notification

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # read access

    @property
    def series(self) -> List[ExperimentSeries]:
        return [copy.deepcopy(item) for item in self._series]

    @property
    def overrides(self) -> Overrides:
        return {sid: dict(cells) for sid, cells in self._overrides.items()}

    @property
    def history(self) -> List[EditRecord]:
        return list(self._history)

    @property
    def series_count(self) -> int:
        return len(self._series)

    @property
    def edit_count(self) -> int:
        return len(self._history)

    def get_series(self, series_id: str) -> ExperimentSeries | None:
        found = self._find(series_id)
        return copy.deepcopy(found) if found is not None else None

    def has_source(self, source_key: str) -> bool:
        return any(item.source_key == source_key for item in self._series)

    def effective_values(self, series_id: str) -> List[Optional[float]] | None:
        found = self._find(series_id)
        if found is None:
            return None
        return apply_edits(found.values, self._overrides.get(series_id, {}))

    def effective_value(self, series_id: str, index: int) -> Optional[float]:
        found = self._find(series_id)
        if found is None or not 0 <= index < len(found.values):
            return None
        return self._overrides.get(series_id, {}).get(index, found.values[index])

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            series=self.series,
            overrides=self.overrides,
            history=self.history,
            view=replace(self.view),
        )

    def _find(self, series_id: str) -> ExperimentSeries | None:
        return next((item for item in self._series if item.id == series_id), None)

    # ------------------------------------------------------------------
    # series lifecycle

    def add_series(self, spec: SeriesSpec | None) -> str | None:
        """Append a new visible-by-default series and return its id."""

        if spec is None or spec.timestamps is None or spec.values is None:
            logger.debug("Ignoring add_series without data")
            return None
        if len(spec.timestamps) != len(spec.values):
            logger.debug(
                "Ignoring add_series for %s: %d timestamps vs %d values",
                spec.source_key,
                len(spec.timestamps),
                len(spec.values),
            )
            return None

        series_id = f"series-{next(self._ids)}"
        self._series.append(
            ExperimentSeries(
                id=series_id,
                label=spec.label,
                source_key=spec.source_key,
                color=spec.color or next(self._color_cycle),
                chart_type=spec.chart_type,
                y_axis_side=spec.y_axis_side,
                visible=spec.visible,
                timestamps=[int(ts) for ts in spec.timestamps],
                values=[None if v is None else float(v) for v in spec.values],
            )
        )
        self._notify()
        return series_id

    def remove_series(self, series_id: str) -> bool:
        found = self._find(series_id)
        if found is None:
            logger.debug("remove_series: unknown id %s", series_id)
            return False
        self._series.remove(found)
        self._overrides.pop(series_id, None)
        self._history = [record for record in self._history if record.series_id != series_id]
        self._notify()
        return True

    def toggle_series(self, series_id: str) -> bool:
        found = self._find(series_id)
        if found is None:
            logger.debug("toggle_series: unknown id %s", series_id)
            return False
        found.visible = not found.visible
        self._notify()
        return True

    def clear_series(self) -> None:
        changed = bool(self._series or self._overrides or self._history)
        self._series = []
        self._overrides = {}
        self._history = []
        self._color_cycle = itertools.cycle(self._palette)
        if changed:
            self._notify()

    def replace_series_data(
        self,
        series_id: str,
        timestamps: Sequence[int],
        values: Sequence[Optional[float]],
        *,
        label: str | None = None,
    ) -> bool:
        """Swap in recalculated data, keeping id, colour, visibility and edits.

        Overrides stay keyed by position, so after a recalculation they may
        point at semantically different points. Edits past the end of shorter
        data are dropped.
        """

        found = self._find(series_id)
        if found is None or len(timestamps) != len(values):
            logger.debug("replace_series_data rejected for %s", series_id)
            return False
        found.timestamps = [int(ts) for ts in timestamps]
        found.values = [None if v is None else float(v) for v in values]
        if label is not None:
            found.label = label
        self._drop_edits_beyond(series_id, len(found.values))
        self._notify()
        return True

    # ------------------------------------------------------------------
    # edits

    def edit_cell(self, series_id: str, index: int, value: float) -> bool:
        found = self._find(series_id)
        if found is None:
            logger.debug("edit_cell: unknown id %s", series_id)
            return False
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(found.values):
            logger.debug("edit_cell: index %s out of range for %s", index, series_id)
            return False
        try:
            new_value = float(value)
        except (TypeError, ValueError):
            logger.debug("edit_cell: non-numeric value %r", value)
            return False
        if not math.isfinite(new_value):
            logger.debug("edit_cell: non-finite value %r", value)
            return False

        cells = self._overrides.setdefault(series_id, {})
        previous = cells.get(index, found.values[index])
        cells[index] = new_value
        self._history.append(EditRecord(series_id, index, previous, new_value))
        self._notify()
        return True

    def undo_last_edit(self) -> EditRecord | None:
        """Revert the most recent edit; returns the undone record."""

        if not self._history:
            return None
        record = self._history.pop()
        found = self._find(record.series_id)
        cells = self._overrides.setdefault(record.series_id, {})
        in_range = found is not None and 0 <= record.index < len(found.values)
        raw = found.values[record.index] if in_range else None
        if not in_range or record.previous_value is None or record.previous_value == raw:
            cells.pop(record.index, None)
        else:
            cells[record.index] = record.previous_value
        if not cells:
            self._overrides.pop(record.series_id, None)
        self._notify()
        return record

    def reset_edits(self, series_id: str | None = None) -> None:
        """Drop overrides and history, for one series or for all of them."""

        if series_id is None:
            if not self._overrides and not self._history:
                return
            self._overrides = {}
            self._history = []
        else:
            history = [record for record in self._history if record.series_id != series_id]
            if series_id not in self._overrides and len(history) == len(self._history):
                return
            self._overrides.pop(series_id, None)
            self._history = history
        self._notify()

    def _drop_edits_beyond(self, series_id: str, length: int) -> None:
        cells = self._overrides.get(series_id)
        if cells:
            for index in [idx for idx in cells if idx >= length]:
                del cells[index]
            if not cells:
                del self._overrides[series_id]
        self._history = [
            record
            for record in self._history
            if record.series_id != series_id or record.index < length
        ]

    # ------------------------------------------------------------------
    # view settings

    def toggle_normalize(self) -> bool:
        self.view.normalize = not self.view.normalize
        self._notify()
        return self.view.normalize

    def toggle_table(self) -> bool:
        self.view.show_table = not self.view.show_table
        self._notify()
        return self.view.show_table

    def _set_param(self, name: str, value: object) -> bool:
        numeric = _positive_int(value)
        if numeric is None:
            logger.debug("Rejected %s=%r: expected a positive integer", name, value)
            return False
        setattr(self.view, name, numeric)
        self._notify()
        return True

    def set_sma_window(self, window: int) -> bool:
        return self._set_param("sma_window", window)

    def set_ema_window(self, window: int) -> bool:
        return self._set_param("ema_window", window)

    def set_rsi_period(self, period: int) -> bool:
        return self._set_param("rsi_period", period)
