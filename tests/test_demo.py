from __future__ import annotations
from datetime import datetime

from roster.aggregate import build_views
from roster.comments import comment_history
from roster.demo import demo_database

NOW = datetime(2025, 1, 6, 9, 30, 0)


def test_demo_shape():
    db = demo_database(now=NOW)
    views = build_views(db)

    assert views.stats.total_students == 220
    assert views.stats.total_classes == 34
    assert views.grades_list == ["K", "1", "2", "3", "4", "5", "6"]
    assert views.stats.students_per_grade["K"] == 40
    assert views.stats.students_per_grade["6"] == 30
    assert [c.level_code for c in views.by_grade["2"].classes] == ["R", "T", "H", "A", "E"]
    assert sorted(c.name for c in views.by_grade["K"].classes) == ["Blue", "Green", "Red", "Yellow"]


def test_demo_links_are_symmetric():
    db = demo_database(now=NOW)
    for sid, student in db.students.items():
        assert len(student.classes) == 1
        assert sid in db.classes[student.classes[0]].students


def test_demo_markers_and_schedules():
    db = demo_database(now=NOW)
    assert sum(1 for s in db.students.values() if s.notes == "F") == 22
    assert db.classes["1R Stars"].schedule == "M-F 9:00-10:00"
    assert db.classes["Kindy Green"].teachers == "Teacher 4"


def test_demo_comments():
    db = demo_database(now=NOW)
    class_entries = [e for log in db.comments.classes.values() for e in comment_history(log)]
    student_entries = [e for log in db.comments.students.values() for e in comment_history(log)]
    assert len(class_entries) == 10
    assert len(student_entries) == 10
    assert all(stamp == NOW for stamp, _ in class_entries + student_entries)
    assert set(db.comments.classes) <= set(db.classes)
    assert set(db.comments.students) <= set(db.students)


def test_demo_is_deterministic():
    assert demo_database(now=NOW).to_dict() == demo_database(now=NOW).to_dict()
