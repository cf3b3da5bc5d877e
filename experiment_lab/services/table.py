"""Tabular view of the experiment for the editable data grid."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..features.indicators import apply_edits
from ..utils.time import date_label
from .store import StoreSnapshot

EMPTY_CELL = "—"


def format_value(value: Optional[float]) -> str:
    """Compact display text for a table cell."""

    if value is None:
        return EMPTY_CELL
    if value >= 1e6:
        return f"{value / 1e6:.2f}M"
    if value >= 1e3:
        return f"{value:.0f}"
    if value >= 1:
        return f"{value:.2f}"
    return f"{value:.4f}"


@dataclass(slots=True)
class TableCell:
    series_id: str
    value: Optional[float]
    text: str
    edited: bool


@dataclass(slots=True)
class TableRow:
    index: int
    timestamp: int
    date: str
    cells: List[TableCell] = field(default_factory=list)


@dataclass(slots=True)
class TableView:
    columns: List[str]
    rows: List[TableRow]
    total_rows: int

    @property
    def remaining(self) -> int:
        return max(0, self.total_rows - len(self.rows))


def build_table(snapshot: StoreSnapshot, limit: int) -> TableView:
    """Rows follow the first series' timeline; visible series get a column."""

    if not snapshot.series:
        return TableView(columns=[], rows=[], total_rows=0)

    timestamps = snapshot.series[0].timestamps
    visible = [item for item in snapshot.series if item.visible]
    effective = {
        item.id: apply_edits(item.values, snapshot.overrides.get(item.id, {}))
        for item in visible
    }
    rows: List[TableRow] = []
    for index, ts in enumerate(timestamps[: max(0, limit)]):
        cells = []
        for item in visible:
            values = effective[item.id]
            value = values[index] if index < len(values) else None
            cells.append(
                TableCell(
                    series_id=item.id,
                    value=value,
                    text=format_value(value),
                    edited=index in snapshot.overrides.get(item.id, {}),
                )
            )
        rows.append(TableRow(index=index, timestamp=ts, date=date_label(ts), cells=cells))
    return TableView(
        columns=[item.label for item in visible],
        rows=rows,
        total_rows=len(timestamps),
    )
