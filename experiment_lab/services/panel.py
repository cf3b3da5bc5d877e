"""User-action orchestration for the Experiment Lab panel."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from ..config import Settings, default_settings
from ..meta import Meta
from ..utils.logging import get_logger
from .chart import ChartDescription, build_from_snapshot
from .extract import (
    IndicatorParams,
    SeriesData,
    SparklineSeries,
    align_to_timeline,
    extract_series,
    extract_sparklines,
)
from .snapshot import MarketSnapshot
from .sources import DATA_SOURCES, SourceDescriptor, get_source, sparkline_descriptor
from .store import ExperimentStore, SeriesSpec
from .table import TableView, build_table, format_value

logger = get_logger(__name__)

_PARAM_LABELS = {"sma": "SMA", "ema": "EMA", "rsi": "RSI"}


@dataclass(slots=True)
class SourceOption:
    source: SourceDescriptor
    available: bool
    added: bool

    @property
    def key(self) -> str:
        return self.source.key


@dataclass(slots=True)
class CellEditResult:
    """Outcome of committing typed cell text; ``display`` is what the cell shows."""

    committed: bool
    display: str


def indicator_label(key: str, window: int) -> str:
    return f"{_PARAM_LABELS[key]}({window})"


def parse_cell_text(text: str | None) -> float | None:
    """Parse user-typed cell text, returning ``None`` when it is not a number."""

    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class PanelController:
    """Applies panel actions to an :class:`ExperimentStore`.

    The controller reads the current market snapshot, decides which sources
    can be offered, and turns user input into store mutations.
    """

    def __init__(
        self,
        store: ExperimentStore,
        snapshot: MarketSnapshot | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or default_settings()
        self.snapshot = snapshot or MarketSnapshot()
        self.visible_rows = self.settings.table.rows_per_page

    def update_snapshot(self, snapshot: MarketSnapshot) -> None:
        """Replace the market data; already-added series keep their data."""

        self.snapshot = snapshot

    @property
    def params(self) -> IndicatorParams:
        view = self.store.view
        return IndicatorParams(
            sma_window=view.sma_window,
            ema_window=view.ema_window,
            rsi_period=view.rsi_period,
        )

    # ------------------------------------------------------------------
    # source discovery

    def _extract(self, key: str) -> SeriesData | None:
        return extract_series(
            self.snapshot,
            key,
            self.params,
            sparkline_span_ms=self.settings.sparklines.span_ms,
        )

    def available_sources(self) -> List[SourceOption]:
        options = []
        for source in DATA_SOURCES:
            options.append(
                SourceOption(
                    source=source,
                    available=self._extract(source.key) is not None,
                    added=self.store.has_source(source.key),
                )
            )
        return options

    def sparkline_sources(self) -> List[SparklineSeries]:
        return extract_sparklines(
            self.snapshot,
            top_n=self.settings.sparklines.top_n,
            span_ms=self.settings.sparklines.span_ms,
        )

    # ------------------------------------------------------------------
    # series actions

    def _aligned(self, data: SeriesData) -> SeriesData:
        if not self.settings.alignment.enabled:
            return data
        primary = self.snapshot.primary_ohlc()
        if primary is None or primary.timestamps == data.timestamps:
            return data
        return align_to_timeline(data, primary.timestamps, self.settings.alignment.max_gap_ms)

    def add_source(self, key: str) -> str | None:
        """Add the catalog or sparkline source ``key``; returns the new series id."""

        if self.store.has_source(key):
            logger.debug("Source %s already added", key)
            return None

        if Meta.is_sparkline_key(key):
            match = next((spark for spark in self.sparkline_sources() if spark.key == key), None)
            if match is None:
                logger.debug("Sparkline %s not available", key)
                return None
            descriptor = sparkline_descriptor(match.key, match.label)
            data: SeriesData | None = match.data
        else:
            descriptor = get_source(key)
            if descriptor is None:
                logger.debug("Unknown source %s", key)
                return None
            data = self._extract(key)

        if data is None:
            logger.debug("Source %s unavailable in current snapshot", key)
            return None

        data = self._aligned(data)
        label = descriptor.label
        if key in Meta.INDICATOR_KEYS:
            label = indicator_label(key, self.params.window_for(key))
        return self.store.add_series(
            SeriesSpec(
                label=label,
                source_key=key,
                timestamps=data.timestamps,
                values=data.values,
                chart_type=descriptor.chart_type,
                y_axis_side=descriptor.y_axis_side,
            )
        )

    def remove_series(self, series_id: str) -> bool:
        return self.store.remove_series(series_id)

    def toggle_series(self, series_id: str) -> bool:
        return self.store.toggle_series(series_id)

    def clear(self) -> None:
        self.store.clear_series()
        self.visible_rows = self.settings.table.rows_per_page

    # ------------------------------------------------------------------
    # indicator parameters

    def set_indicator_param(self, key: str, value: int) -> bool:
        """Update an indicator window and recompute series derived from it.

        Recomputed series keep their id, colour, visibility and any cell
        overrides.
        """

        setters = {
            "sma": self.store.set_sma_window,
            "ema": self.store.set_ema_window,
            "rsi": self.store.set_rsi_period,
        }
        setter = setters.get(key)
        if setter is None or not setter(value):
            return False

        data = self._extract(key)
        if data is None:
            return True
        label = indicator_label(key, self.params.window_for(key))
        for item in self.store.series:
            if item.source_key == key:
                self.store.replace_series_data(item.id, data.timestamps, data.values, label=label)
        return True

    # ------------------------------------------------------------------
    # table editing

    def commit_cell_text(self, series_id: str, index: int, text: str | None) -> CellEditResult:
        """Commit typed text, or report the value the cell should revert to."""

        value = parse_cell_text(text)
        if value is not None and self.store.edit_cell(series_id, index, value):
            return CellEditResult(committed=True, display=format_value(value))
        logger.debug("Reverting cell %s[%s]: %r not committed", series_id, index, text)
        return CellEditResult(committed=False, display=self.cell_display(series_id, index))

    def cell_display(self, series_id: str, index: int) -> str:
        value: Optional[float] = self.store.effective_value(series_id, index)
        return format_value(value)

    def undo(self) -> bool:
        return self.store.undo_last_edit() is not None

    def reset_edits(self, series_id: str | None = None) -> None:
        self.store.reset_edits(series_id)

    # ------------------------------------------------------------------
    # derived views

    def chart(self, dark: bool = True) -> ChartDescription | None:
        return build_from_snapshot(self.store.snapshot(), dark)

    def table(self) -> TableView:
        return build_table(self.store.snapshot(), self.visible_rows)

    def show_more_rows(self) -> int:
        self.visible_rows += self.settings.table.rows_per_page
        return self.visible_rows
