"""Windowed rendering and client-side sorting for large bar tables.

Only the rows that fit the viewport (plus a small overscan) are rendered;
spacer heights above and below keep the scroll extent equal to the full table.
"""

from __future__ import annotations

import json
import math
import numbers
import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Dict, List, Mapping, Optional, Sequence

ROW_HEIGHT_PX = 32
OVERSCAN_ROWS = 5
MIN_VISIBLE_ROWS = 20
EXTRA_VISIBLE_ROWS = 10

ASC = "asc"
DESC = "desc"

Record = Mapping[str, Any]

_WORD_START = re.compile(r"\b\w")


@dataclass(frozen=True)
class RowWindow:
    start: int
    end: int
    top_pad_px: int
    bottom_pad_px: int

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class SortState:
    key: Optional[str] = None
    direction: str = ASC

    def toggle(self, column: str) -> "SortState":
        """Header click: flip the active column, start any other column ascending."""
        if column == self.key:
            return SortState(column, DESC if self.direction == ASC else ASC)
        return SortState(column, ASC)

    @property
    def indicator(self) -> str:
        return "▲" if self.direction == ASC else "▼"


def headers_for(records: Sequence[Record]) -> List[str]:
    if not records:
        return []
    return list(records[0].keys())


def header_label(column: str) -> str:
    return _WORD_START.sub(lambda match: match.group().upper(), column.replace("_", " "))


def visible_window(
    total_rows: int,
    scroll_top: float,
    container_height: float,
    row_height: int = ROW_HEIGHT_PX,
) -> RowWindow:
    visible_count = max(
        MIN_VISIBLE_ROWS, math.ceil(max(container_height, 0) / row_height) + EXTRA_VISIBLE_ROWS
    )
    start = max(0, math.floor(max(scroll_top, 0) / row_height) - OVERSCAN_ROWS)
    start = min(start, total_rows)
    end = min(total_rows, start + visible_count)
    return RowWindow(
        start=start,
        end=end,
        top_pad_px=start * row_height,
        bottom_pad_px=(total_rows - end) * row_height,
    )


def scroll_top_for_row(row: int, row_height: int = ROW_HEIGHT_PX) -> int:
    """Scroll offset whose window starts exactly at ``row`` despite the overscan."""
    return (max(row, 0) + OVERSCAN_ROWS) * row_height


def scroll_extent(total_rows: int, row_height: int = ROW_HEIGHT_PX) -> int:
    return total_rows * row_height


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def compare_values(a: Any, b: Any, direction: str = ASC) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return -1 if direction == ASC else 1
    if b is None:
        return 1 if direction == ASC else -1
    if _is_number(a) and _is_number(b):
        diff = a - b if direction == ASC else b - a
        return (diff > 0) - (diff < 0)
    left, right = str(a), str(b)
    if direction == DESC:
        left, right = right, left
    return (left > right) - (left < right)


def sort_records(records: Sequence[Record], sort: SortState) -> List[Record]:
    """Return a sorted copy; the input order is kept when no key is active."""
    if not sort.key:
        return list(records)
    key = sort.key
    return sorted(
        records,
        key=cmp_to_key(lambda a, b: compare_values(a.get(key), b.get(key), sort.direction)),
    )


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, numbers.Integral):
        return str(value)
    if _is_number(value):
        if float(value).is_integer():
            return str(int(value))
        return f"{value:.4f}"
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def window_rows(
    records: Sequence[Record], window: RowWindow, columns: Sequence[str]
) -> List[Dict[str, str]]:
    """Formatted cells for the rows inside ``window``, keyed by column."""
    rows = []
    for record in records[window.start : window.end]:
        rows.append({column: format_cell(record.get(column)) for column in columns})
    return rows
