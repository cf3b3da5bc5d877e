"""Fixed metadata for the Experiment Lab overlay chart."""
from __future__ import annotations

from typing import Dict, Tuple


class Meta:
    """Holds theme palettes and the indicator source keys."""

    INDICATOR_KEYS: Tuple[str, ...] = ("sma", "ema", "rsi")
    SPARKLINE_PREFIX: str = "sparkline:"

    _THEMES: Dict[str, Dict[str, str]] = {
        "dark": {
            "split_line": "rgba(255,255,255,0.04)",
            "axis_label": "#9ca3af",
            "category_label": "#6b7280",
            "axis_line": "rgba(255,255,255,0.06)",
            "tooltip_bg": "rgba(15,15,25,0.95)",
            "tooltip_border": "rgba(255,255,255,0.1)",
            "tooltip_text": "#e5e7eb",
            "zoom_border": "rgba(255,255,255,0.06)",
            "zoom_bg": "rgba(255,255,255,0.02)",
        },
        "light": {
            "split_line": "rgba(0,0,0,0.06)",
            "axis_label": "#64748b",
            "category_label": "#94a3b8",
            "axis_line": "rgba(0,0,0,0.1)",
            "tooltip_bg": "rgba(255,255,255,0.95)",
            "tooltip_border": "rgba(0,0,0,0.1)",
            "tooltip_text": "#334155",
            "zoom_border": "rgba(0,0,0,0.1)",
            "zoom_bg": "rgba(0,0,0,0.02)",
        },
    }

    @classmethod
    def theme(cls, dark: bool) -> Dict[str, str]:
        """Return a copy of the colour set for the requested theme."""

        return dict(cls._THEMES["dark" if dark else "light"])

    @classmethod
    def is_sparkline_key(cls, key: str) -> bool:
        return key.startswith(cls.SPARKLINE_PREFIX)
