"""Technical indicator and value-transform helpers for overlay series.

Every function takes an ordered sequence of floats (``None`` marks a missing
point) and returns a fresh list of the same length. Windows that cannot be
satisfied by the input produce an all-``None`` result instead of raising.
"""
from __future__ import annotations

import math
from typing import List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

MaybeFloat = Optional[float]


def _to_series(values: Sequence[MaybeFloat]) -> pd.Series:
    return pd.Series([np.nan if v is None else float(v) for v in values], dtype=float)


def _to_list(series: pd.Series) -> List[MaybeFloat]:
    return [None if math.isnan(v) else float(v) for v in series.tolist()]


def _empty(length: int) -> List[MaybeFloat]:
    return [None] * length


def _window_fits(window: int, length: int) -> bool:
    if isinstance(window, bool) or not isinstance(window, (int, np.integer)):
        return False
    return 0 < window < length


def _is_finite(value: MaybeFloat) -> bool:
    return value is not None and math.isfinite(value)


def sma(values: Sequence[MaybeFloat], window: int) -> List[MaybeFloat]:
    """Simple moving average over a trailing ``window`` of points."""

    if not _window_fits(window, len(values)):
        return _empty(len(values))
    series = _to_series(values)
    return _to_list(series.rolling(window=window, min_periods=window).mean())


def ema(values: Sequence[MaybeFloat], window: int) -> List[MaybeFloat]:
    """Exponential moving average seeded with the SMA of the first window.

    The seed lands at index ``window - 1``; afterwards each point blends the
    previous average and the current value with ``alpha = 2 / (window + 1)``.
    A missing input carries the previous average forward.
    """

    length = len(values)
    if not _window_fits(window, length):
        return _empty(length)
    head = [v for v in values[:window] if _is_finite(v)]
    if not head:
        return _empty(length)

    alpha = 2.0 / (window + 1)
    out = _empty(length)
    prev = float(np.mean(head))
    out[window - 1] = prev
    for idx in range(window, length):
        current = values[idx]
        if _is_finite(current):
            prev = prev * (1 - alpha) + float(current) * alpha
        out[idx] = prev
    return out


def rsi(values: Sequence[MaybeFloat], period: int = 14) -> List[MaybeFloat]:
    """Relative Strength Index using Wilder smoothing.

    The first ``period`` entries are ``None``. A window with no losses scores
    100, so the result always stays within ``[0, 100]``.
    """

    length = len(values)
    if not _window_fits(period, length):
        return _empty(length)

    delta = _to_series(values).diff().fillna(0.0)
    gains = delta.clip(lower=0).to_numpy()
    losses = (-delta.clip(upper=0)).to_numpy()

    out = _empty(length)
    avg_gain = float(gains[1 : period + 1].mean())
    avg_loss = float(losses[1 : period + 1].mean())
    out[period] = _rsi_point(avg_gain, avg_loss)
    for idx in range(period + 1, length):
        avg_gain = (avg_gain * (period - 1) + gains[idx]) / period
        avg_loss = (avg_loss * (period - 1) + losses[idx]) / period
        out[idx] = _rsi_point(avg_gain, avg_loss)
    return out


def _rsi_point(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def normalize_to_base100(values: Sequence[MaybeFloat]) -> List[MaybeFloat]:
    """Rebase a series so its first finite value becomes 100."""

    base = next((v for v in values if _is_finite(v)), None)
    if base is None or base == 0:
        return list(values)
    return [None if v is None else float(v) / base * 100 for v in values]


def apply_edits(values: Sequence[MaybeFloat], overrides: Mapping[int, float]) -> List[MaybeFloat]:
    """Return a copy of ``values`` with each ``index -> value`` override applied."""

    out = list(values)
    for index, value in overrides.items():
        if 0 <= index < len(out):
            out[index] = value
    return out


INDICATORS = {
    "sma": sma,
    "ema": ema,
    "rsi": rsi,
}


def compute_indicator(key: str, closes: Sequence[MaybeFloat], window: int) -> List[MaybeFloat]:
    """Dispatch to the indicator registered under ``key``."""

    return INDICATORS[key](closes, window)
