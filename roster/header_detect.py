from __future__ import annotations
from typing import Any, List, Optional, Sequence, Tuple

Grid = Sequence[Sequence[Any]]


def row_cell(row: Optional[Sequence[Any]], j: int) -> Any:
    if not row or j >= len(row):
        return None
    return row[j]


def _is_wide(row: Optional[Sequence[Any]]) -> bool:
    # rows with a single cell carry no data next to the label
    return bool(row) and len(row) > 1


def find_header_row(grid: Grid, pair: Tuple[str, str]) -> Optional[int]:
    """
    Index of the first row whose first two cells equal ``pair`` literally
    (the roster template pins them, trailing spaces included), else None.
    """
    first, second = pair
    for i, row in enumerate(grid):
        if _is_wide(row) and row[0] == first and row[1] == second:
            return i
    return None


def find_marker_row(grid: Grid, label: str) -> Optional[int]:
    # schedule sheets mark their Class / Time / Teacher rows in column A
    for i, row in enumerate(grid):
        if _is_wide(row) and row[0] == label:
            return i
    return None


def find_marker_rows(grid: Grid, labels: Sequence[str]) -> Optional[List[int]]:
    """All marker rows in ``labels`` order, or None when any one is missing."""
    found = []
    for label in labels:
        idx = find_marker_row(grid, label)
        if idx is None:
            return None
        found.append(idx)
    return found
