"""Service layer exports for the Experiment Lab engine."""

from .chart import ChartDescription, ChartSeries, ValueAxis, build_from_snapshot, build_overlay_chart
from .extract import (
    IndicatorParams,
    SeriesData,
    align_to_timeline,
    extract_series,
    extract_sparklines,
)
from .panel import CellEditResult, PanelController, SourceOption, parse_cell_text
from .snapshot import MarketSnapshot, snapshot_from_payload
from .sources import DATA_SOURCES, SourceDescriptor
from .store import EditRecord, ExperimentSeries, ExperimentStore, SeriesSpec, StoreSnapshot
from .table import TableView, build_table, format_value

__all__ = [
    "ChartDescription",
    "ChartSeries",
    "ValueAxis",
    "build_from_snapshot",
    "build_overlay_chart",
    "IndicatorParams",
    "SeriesData",
    "align_to_timeline",
    "extract_series",
    "extract_sparklines",
    "CellEditResult",
    "PanelController",
    "SourceOption",
    "parse_cell_text",
    "MarketSnapshot",
    "snapshot_from_payload",
    "DATA_SOURCES",
    "SourceDescriptor",
    "EditRecord",
    "ExperimentSeries",
    "ExperimentStore",
    "SeriesSpec",
    "StoreSnapshot",
    "TableView",
    "build_table",
    "format_value",
]
