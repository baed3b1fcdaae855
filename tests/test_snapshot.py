from __future__ import annotations
import json

import pytest

from roster.errors import SnapshotError
from roster.model import Comments, Database
from roster.pipeline import ingest
from roster.snapshot import dumps, load_snapshot, loads, save_snapshot


@pytest.fixture
def db(sample_sheets):
    result = ingest(sample_sheets, comments=Comments(classes={"3A Stars": "note"}))
    return result.database


def test_save_and_load(tmp_path, db):
    path = save_snapshot(db, tmp_path / "nested" / "snapshot.json")
    assert path.exists()
    assert load_snapshot(path) == db


def test_dumps_uses_camel_case_keys(db):
    payload = json.loads(dumps(db))
    assert set(payload) == {"classes", "students", "comments"}
    anna = payload["students"]["Anna-이영희"]
    assert anna["englishName"] == "Anna"
    assert anna["phoneNumber"] == "010-1111"
    assert "hold" not in anna
    assert payload["classes"]["3A Stars"]["fullLevelName"] == "Grade 3 Ace"
    assert payload["comments"]["classes"] == {"3A Stars": "note"}


def test_loads_exported_file_without_comments():
    text = json.dumps({
        "classes": {
            "3A Stars": {
                "id": "3A Stars", "name": "Stars", "grade": "3", "levelCode": "A", "level": "3A",
                "levelName": "Ace", "fullLevelName": "Grade 3 Ace", "additionalInfo": "",
                "schedule": "MW 3-4", "teachers": "Kim", "students": ["Anna-이영희"],
            }
        },
        "students": {
            "Anna-이영희": {
                "id": "Anna-이영희", "englishName": "Anna", "koreanName": "이영희", "grade": "3",
                "classes": ["3A Stars"], "notes": "", "feedback1": 5, "startDate": "3/14",
            }
        },
    }, ensure_ascii=False)
    db = loads(text)
    assert db.classes["3A Stars"].level_code == "A"
    assert db.students["Anna-이영희"].feedback1 == 5
    assert db.students["Anna-이영희"].start_date == "3/14"
    assert db.comments == Comments()


@pytest.mark.parametrize("text", ["not json", "[]", '{"classes": []}', '{"classes": {}}'])
def test_loads_rejects_bad_payloads(text):
    with pytest.raises(SnapshotError):
        loads(text)


def test_load_snapshot_missing_or_unreadable(tmp_path):
    assert load_snapshot(tmp_path / "absent.json") is None
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    assert load_snapshot(bad) is None


def test_empty_database_round_trip():
    assert loads(dumps(Database.empty())) == Database.empty()
