from __future__ import annotations
import logging
from io import BytesIO
from typing import Any, Dict, List
import pandas as pd
from openpyxl import load_workbook

logger = logging.getLogger(__name__)
# =========================

# Excel: sheet -> matrix of raw cell values
# =========================
def _trim_row(row: List[Any]) -> List[Any]:
    # trailing empty cells carry nothing; "row has >1 cell" checks rely on this
    end = len(row)
    while end and row[end - 1] is None:
        end -= 1
    return row[:end]


def _sheet_to_matrix(ws, expand_merged: bool = False) -> List[List[Any]]:
    merged_map = {}
    if expand_merged:
        for r in ws.merged_cells.ranges:
            min_col, min_row, max_col, max_row = r.bounds
            top_val = ws.cell(min_row, min_col).value
            for rr in range(min_row, max_row + 1):
                for cc in range(min_col, max_col + 1):
                    merged_map[(rr, cc)] = top_val

    rows = []
    for r, values in enumerate(ws.iter_rows(values_only=True), start=1):
        row_vals = list(values)
        if merged_map:
            for c in range(1, len(row_vals) + 1):
                v = row_vals[c - 1]
                if (r, c) in merged_map and (v is None or str(v).strip() == ""):
                    row_vals[c - 1] = merged_map[(r, c)]
        rows.append(_trim_row(row_vals))

    return rows


def _frame_to_matrix(df: pd.DataFrame) -> List[List[Any]]:
    df = df.astype(object).where(pd.notna(df), None)
    return [_trim_row(list(r)) for r in df.itertuples(index=False, name=None)]


def read_workbook(data: bytes, expand_merged: bool = False) -> Dict[str, List[List[Any]]]:
    """
    Workbook bytes -> {sheet name: grid}, sheets in workbook order.
    Cells keep their openpyxl types (str / int / float / datetime / None).
    Merged areas stay empty outside their top-left cell unless ``expand_merged``.
    Raises whatever the decoder raises when the bytes are not a workbook.
    """
    xls = pd.ExcelFile(BytesIO(data), engine="openpyxl")
    wb = load_workbook(BytesIO(data), read_only=False, data_only=True)

    sheets: Dict[str, List[List[Any]]] = {}
    for sheet in xls.sheet_names:
        try:
            sheets[sheet] = _sheet_to_matrix(wb[sheet], expand_merged=expand_merged)
        except (KeyError, ValueError, TypeError) as err:
            # fallback
            logger.warning("sheet %r: openpyxl matrix failed (%s), reading through pandas", sheet, err)
            sheets[sheet] = _frame_to_matrix(pd.read_excel(xls, sheet_name=sheet, header=None))

    logger.info("workbook decoded: %d sheets", len(sheets))
    return sheets
