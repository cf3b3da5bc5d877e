"""Typed views over the market-data snapshot supplied by the dashboard."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..utils.time import now_ms


@dataclass(slots=True)
class OhlcCandle:
    """Single ``[timestamp, open, high, low, close(, volume)]`` row."""

    t: int
    o: float
    h: float
    l: float
    c: float
    v: float | None = None


@dataclass(slots=True)
class OhlcHistory:
    coin_id: str
    candles: List[OhlcCandle] = field(default_factory=list)

    @property
    def timestamps(self) -> List[int]:
        return [candle.t for candle in self.candles]

    @property
    def closes(self) -> List[float]:
        return [candle.c for candle in self.candles]

    @property
    def has_volume(self) -> bool:
        return bool(self.candles) and all(candle.v is not None for candle in self.candles)


@dataclass(slots=True)
class SentimentPoint:
    timestamp_s: int
    value: float


@dataclass(slots=True)
class SentimentHistory:
    """Sentiment index history in upstream order (newest first)."""

    points: List[SentimentPoint] = field(default_factory=list)


@dataclass(slots=True)
class DominanceReading:
    """Market-cap dominance percentages keyed by lower-case symbol."""

    percentages: Dict[str, float] = field(default_factory=dict)

    def get(self, symbol: str) -> float | None:
        return self.percentages.get(symbol.lower())


@dataclass(slots=True)
class SparklineSample:
    coin_id: str
    symbol: str
    prices: List[float] = field(default_factory=list)


@dataclass(slots=True)
class MarketSnapshot:
    """Everything the extractor may read, captured at ``as_of_ms``."""

    ohlc: Dict[str, OhlcHistory] = field(default_factory=dict)
    sentiment: SentimentHistory | None = None
    dominance: DominanceReading | None = None
    markets: List[SparklineSample] = field(default_factory=list)
    as_of_ms: int = field(default_factory=now_ms)

    def primary_ohlc(self) -> OhlcHistory | None:
        """Return the first instrument's candles, or ``None`` when empty."""

        for history in self.ohlc.values():
            return history if history.candles else None
        return None


def _finite(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_candle(row: object) -> OhlcCandle | None:
    if not isinstance(row, Sequence) or isinstance(row, (str, bytes)) or len(row) < 5:
        return None
    fields = [_finite(item) for item in row[:5]]
    if any(item is None for item in fields):
        return None
    ts, open_, high, low, close = fields
    volume = _finite(row[5]) if len(row) > 5 else None
    return OhlcCandle(t=int(ts), o=open_, h=high, l=low, c=close, v=volume)  # type: ignore[arg-type]


def _parse_ohlc(raw: object) -> Dict[str, OhlcHistory]:
    if not isinstance(raw, Mapping):
        return {}
    result: Dict[str, OhlcHistory] = {}
    for coin_id, rows in raw.items():
        if not isinstance(rows, Sequence) or isinstance(rows, (str, bytes)):
            continue
        candles = [candle for candle in (_parse_candle(row) for row in rows) if candle is not None]
        result[str(coin_id)] = OhlcHistory(coin_id=str(coin_id), candles=candles)
    return result


def _parse_sentiment(raw: object) -> SentimentHistory | None:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return None
    points: List[SentimentPoint] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        ts = _finite(item.get("timestamp"))
        value = _finite(item.get("value"))
        if ts is None or value is None:
            continue
        points.append(SentimentPoint(timestamp_s=int(ts), value=value))
    return SentimentHistory(points=points)


def _parse_dominance(raw: object) -> DominanceReading | None:
    if not isinstance(raw, Mapping):
        return None
    percentages = raw.get("market_cap_percentage")
    if not isinstance(percentages, Mapping):
        return None
    parsed = {
        str(symbol).lower(): number
        for symbol, number in ((k, _finite(v)) for k, v in percentages.items())
        if number is not None
    }
    return DominanceReading(percentages=parsed)


def _parse_markets(raw: object) -> List[SparklineSample]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return []
    samples: List[SparklineSample] = []
    for coin in raw:
        if not isinstance(coin, Mapping) or not coin.get("id"):
            continue
        sparkline = coin.get("sparkline_in_7d")
        prices: List[float] = []
        if isinstance(sparkline, Mapping) and isinstance(sparkline.get("price"), Sequence):
            prices = [p for p in (_finite(v) for v in sparkline["price"]) if p is not None]
        samples.append(
            SparklineSample(
                coin_id=str(coin["id"]),
                symbol=str(coin.get("symbol") or coin["id"]),
                prices=prices,
            )
        )
    return samples


def snapshot_from_payload(payload: Mapping[str, object], *, as_of_ms: Optional[int] = None) -> MarketSnapshot:
    """Build a :class:`MarketSnapshot` from the raw dashboard data mapping.

    Accepted keys: ``ohlc`` (coin id -> candle rows), ``fearGreed`` or
    ``fear_greed``, ``global`` and ``markets``. Malformed rows are dropped.
    """

    sentiment_raw = payload.get("fearGreed", payload.get("fear_greed"))
    return MarketSnapshot(
        ohlc=_parse_ohlc(payload.get("ohlc")),
        sentiment=_parse_sentiment(sentiment_raw),
        dominance=_parse_dominance(payload.get("global")),
        markets=_parse_markets(payload.get("markets")),
        as_of_ms=now_ms() if as_of_ms is None else int(as_of_ms),
    )
