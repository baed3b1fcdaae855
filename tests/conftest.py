from __future__ import annotations
from io import BytesIO
from typing import Dict, Iterable, Optional, Sequence

import pytest
from openpyxl import Workbook

from roster.infer import SheetSchema


def make_workbook_bytes(sheets: Dict[str, Iterable[Sequence]], merges: Optional[Dict[str, Sequence[str]]] = None) -> bytes:
    """{sheet name: rows} -> .xlsx bytes, sheets kept in dict order."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(list(row))
        for ref in (merges or {}).get(name, []):
            ws.merge_cells(ref)
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


@pytest.fixture
def schema() -> SheetSchema:
    return SheetSchema.from_dict()


@pytest.fixture
def g3_roster():
    return [
        ["Grade 3 roster"],
        ["Class/Level/Time", "Name ", "Consent", "Phone number ", "email", "Feedback\n1-5"],
        ["3A\nStars\nBook 4\nMW 3-4\nKim", "Anna 이영희", "Y", "010-1111", "anna@x.com", 5],
        ["3R\nComets", "Ben 박민준 F", "N"],
        [None, "Chris 최지우"],
        ["3H\nMoons", None],
        ["3A\nStars", "Anna 이영희"],
    ]


@pytest.fixture
def monwed_schedule():
    return [
        ["Class", "3A\nStars", "3R\nComets", "4T\nJets"],
        ["Time", "M-W 3-4", "M-W 10-11", "M-W 5-6"],
        ["Teacher", "Kim", "Lee", "Park"],
        [None, "Anna 이영희", "Dana 정하나", "Eli 윤서준"],
        [None, None, "Ben 박민준"],
    ]


@pytest.fixture
def sample_sheets(g3_roster, monwed_schedule):
    # schedule sheet first: passes still run rosters before schedules
    return {
        "MonWed": monwed_schedule,
        "G3": g3_roster,
        "Notes": [["anything", "at all"], ["Class", "Time"]],
    }


@pytest.fixture
def sample_workbook(sample_sheets) -> bytes:
    return make_workbook_bytes(sample_sheets)


@pytest.fixture
def workbook_bytes():
    return make_workbook_bytes
