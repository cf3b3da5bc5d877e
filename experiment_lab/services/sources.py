"""Catalog of the series a user can add to an experiment."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal

ChartKind = Literal["line", "bar", "area"]
AxisSide = Literal["left", "right"]
SourceCategory = Literal["data", "calculated"]


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """Read-only declaration of a potential series."""

    key: str
    label: str
    chart_type: ChartKind
    y_axis_side: AxisSide
    category: SourceCategory


DATA_SOURCES: List[SourceDescriptor] = [
    SourceDescriptor("ohlc_close", "Price (Close)", "line", "left", "data"),
    SourceDescriptor("ohlc_volume", "Volume", "bar", "right", "data"),
    SourceDescriptor("ohlc_high", "Price (High)", "line", "left", "data"),
    SourceDescriptor("ohlc_low", "Price (Low)", "line", "left", "data"),
    SourceDescriptor("fear_greed", "Fear & Greed", "area", "right", "data"),
    SourceDescriptor("btc_dominance", "BTC Dominance", "line", "right", "data"),
    SourceDescriptor("sma", "SMA", "line", "left", "calculated"),
    SourceDescriptor("ema", "EMA", "line", "left", "calculated"),
    SourceDescriptor("rsi", "RSI", "line", "right", "calculated"),
]

_BY_KEY: Dict[str, SourceDescriptor] = {source.key: source for source in DATA_SOURCES}


def get_source(key: str) -> SourceDescriptor | None:
    return _BY_KEY.get(key)


def sparkline_descriptor(key: str, label: str) -> SourceDescriptor:
    """Descriptor for a dynamic ``sparkline:<coin>`` source."""

    return SourceDescriptor(key, label, "line", "left", "data")
