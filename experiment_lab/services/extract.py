"""Adapt market snapshot shapes into uniform ``(timestamps, values)`` pairs.

Extraction never raises on missing upstream data: an unavailable source is
reported as ``None`` and the caller decides how to present it.
"""
from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from ..features import indicators
from ..meta import Meta
from ..utils.logging import get_logger
from .snapshot import MarketSnapshot, OhlcHistory

logger = get_logger(__name__)

DEFAULT_SPARKLINE_SPAN_MS = 7 * 24 * 60 * 60 * 1000


@dataclass(slots=True)
class SeriesData:
    """Equal-length timestamp and value sequences."""

    timestamps: List[int]
    values: List[Optional[float]]


@dataclass(slots=True)
class IndicatorParams:
    sma_window: int = 20
    ema_window: int = 20
    rsi_period: int = 14

    def window_for(self, key: str) -> int:
        return {
            "sma": self.sma_window,
            "ema": self.ema_window,
            "rsi": self.rsi_period,
        }[key]


@dataclass(slots=True)
class SparklineSeries:
    key: str
    label: str
    data: SeriesData = field(default_factory=lambda: SeriesData([], []))


def _ohlc_field(getter: Callable[[OhlcHistory], List[Optional[float]]]):
    def extract(snapshot: MarketSnapshot, params: IndicatorParams) -> SeriesData | None:
        ohlc = snapshot.primary_ohlc()
        if ohlc is None:
            return None
        return SeriesData(ohlc.timestamps, getter(ohlc))

    return extract


def _extract_volume(snapshot: MarketSnapshot, params: IndicatorParams) -> SeriesData | None:
    ohlc = snapshot.primary_ohlc()
    # Most OHLC feeds carry no volume column.
    if ohlc is None or not ohlc.has_volume:
        return None
    return SeriesData(ohlc.timestamps, [candle.v for candle in ohlc.candles])


def _extract_sentiment(snapshot: MarketSnapshot, params: IndicatorParams) -> SeriesData | None:
    if snapshot.sentiment is None or not snapshot.sentiment.points:
        return None
    oldest_first = list(reversed(snapshot.sentiment.points))
    return SeriesData(
        [point.timestamp_s * 1000 for point in oldest_first],
        [point.value for point in oldest_first],
    )


def _extract_dominance(snapshot: MarketSnapshot, params: IndicatorParams) -> SeriesData | None:
    if snapshot.dominance is None:
        return None
    btc = snapshot.dominance.get("btc")
    ohlc = snapshot.primary_ohlc()
    if btc is None or ohlc is None:
        return None
    # Flat reference line across the price timeline.
    return SeriesData(ohlc.timestamps, [btc] * len(ohlc.candles))


def _indicator(key: str):
    def extract(snapshot: MarketSnapshot, params: IndicatorParams) -> SeriesData | None:
        ohlc = snapshot.primary_ohlc()
        if ohlc is None:
            return None
        values = indicators.compute_indicator(key, ohlc.closes, params.window_for(key))
        return SeriesData(ohlc.timestamps, values)

    return extract


_EXTRACTORS: Dict[str, Callable[[MarketSnapshot, IndicatorParams], Optional[SeriesData]]] = {
    "ohlc_close": _ohlc_field(lambda ohlc: [candle.c for candle in ohlc.candles]),
    "ohlc_high": _ohlc_field(lambda ohlc: [candle.h for candle in ohlc.candles]),
    "ohlc_low": _ohlc_field(lambda ohlc: [candle.l for candle in ohlc.candles]),
    "ohlc_volume": _extract_volume,
    "fear_greed": _extract_sentiment,
    "btc_dominance": _extract_dominance,
    "sma": _indicator("sma"),
    "ema": _indicator("ema"),
    "rsi": _indicator("rsi"),
}


def extract_series(
    snapshot: MarketSnapshot,
    source_key: str,
    params: IndicatorParams | None = None,
    *,
    sparkline_span_ms: int = DEFAULT_SPARKLINE_SPAN_MS,
) -> SeriesData | None:
    """Return the series for ``source_key`` or ``None`` when unavailable."""

    params = params or IndicatorParams()
    if Meta.is_sparkline_key(source_key):
        coin_id = source_key[len(Meta.SPARKLINE_PREFIX) :]
        for sample in snapshot.markets:
            if sample.coin_id == coin_id:
                return _sparkline_data(sample.prices, snapshot.as_of_ms, sparkline_span_ms)
        return None

    extractor = _EXTRACTORS.get(source_key)
    if extractor is None:
        logger.debug("No extractor registered for source %s", source_key)
        return None
    return extractor(snapshot, params)


def _sparkline_data(prices: Sequence[float], end_ms: int, span_ms: int) -> SeriesData | None:
    if not prices:
        return None
    step = span_ms / len(prices)
    last = len(prices) - 1
    timestamps = [int(round(end_ms - (last - idx) * step)) for idx in range(len(prices))]
    return SeriesData(timestamps, [float(p) for p in prices])


def extract_sparklines(
    snapshot: MarketSnapshot,
    *,
    top_n: int = 10,
    span_ms: int = DEFAULT_SPARKLINE_SPAN_MS,
) -> List[SparklineSeries]:
    """Return 7-day sparkline series for the top ranked instruments."""

    result: List[SparklineSeries] = []
    for sample in snapshot.markets[:top_n]:
        data = _sparkline_data(sample.prices, snapshot.as_of_ms, span_ms)
        if data is None:
            continue
        result.append(
            SparklineSeries(
                key=f"{Meta.SPARKLINE_PREFIX}{sample.coin_id}",
                label=f"{sample.symbol.upper()} 7d",
                data=data,
            )
        )
    return result


def align_to_timeline(
    data: SeriesData,
    target_timestamps: Sequence[int],
    max_gap_ms: int,
) -> SeriesData:
    """Map ``data`` onto ``target_timestamps`` by nearest neighbour.

    Targets farther than ``max_gap_ms`` from any source point become ``None``.
    """

    pairs = sorted(zip(data.timestamps, data.values), key=lambda pair: pair[0])
    if not pairs:
        return SeriesData(list(target_timestamps), [None] * len(target_timestamps))

    source_times = [pair[0] for pair in pairs]
    aligned: List[Optional[float]] = []
    for ts in target_timestamps:
        pos = min(bisect_left(source_times, ts), len(pairs) - 1)
        closest = pairs[pos]
        if pos > 0 and abs(pairs[pos - 1][0] - ts) < abs(closest[0] - ts):
            closest = pairs[pos - 1]
        aligned.append(closest[1] if abs(closest[0] - ts) <= max_gap_ms else None)
    return SeriesData(list(target_timestamps), aligned)
