from __future__ import annotations
import random

import pytest

from roster.aggregate import UNASSIGNED, build_views, filter_students, sort_grades
from roster.entity import DatabaseBuilder
from roster.extract import NameToken, parse_class_token
from roster.model import Database


def _db(schema, class_cells, students=()):
    """students: (english, korean, grade, [class cells])"""
    b = DatabaseBuilder(schema)
    for cell in class_cells:
        b.merge_class(parse_class_token(cell))
    for en, ko, grade, cells in students:
        s = b.merge_student(NameToken(en, ko), grade)
        for cell in cells:
            b.link(s, b.merge_class(parse_class_token(cell)))
    return b.finish()


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_level_sort_order(schema, seed):
    cells = ["2R\nComets", "2H\nMoons", "2A\nSuns"]
    random.Random(seed).shuffle(cells)
    views = build_views(_db(schema, cells))
    assert [c.level_code for c in views.classes_by_grade["2"].classes] == ["R", "H", "A"]


def test_unknown_levels_sort_last_then_by_name(schema):
    cells = ["2P\nbeta", "2E\nZed", "2P\nAlpha", "2T\nTop"]
    views = build_views(_db(schema, cells))
    assert [c.id for c in views.by_grade["2"].classes] == ["2T Top", "2E Zed", "2P Alpha", "2P beta"]


def test_grade_bucket_ordering():
    assert sort_grades(["3", "K", UNASSIGNED, "1"]) == ["K", "1", "3", UNASSIGNED]
    assert sort_grades(["10", "2", "K", "2"]) == ["K", "2", "10"]


def test_grades_list_follows_bucket_order(schema):
    db = _db(
        schema,
        ["10R\nA", "2R\nB"],
        [("Kim", "김", "", []), ("Mia", "한지민", "K", [])],
    )
    views = build_views(db)
    assert views.grades_list == ["K", "2", "10", UNASSIGNED]
    assert list(views.by_grade) == views.grades_list


def test_student_sits_under_every_grade_but_counts_once(schema):
    db = _db(
        schema,
        [],
        [
            ("Anna", "이영희", "3", ["3A\nStars", "4T\nJets"]),
            ("Ben", "박민준", "3", ["3A\nStars"]),
        ],
    )
    views = build_views(db)

    assert [s.english_name for s in views.students_by_grade["3"].students] == ["Anna", "Ben"]
    assert [s.english_name for s in views.students_by_grade["4"].students] == ["Anna"]
    # counted from student.grade only
    assert views.stats.students_per_grade == {"3": 2}
    assert views.stats.total_students == 2
    assert views.stats.total_classes == 2


def test_student_without_grade_or_class_is_unassigned(schema):
    db = _db(schema, [], [("Kim", "김", "", [])])
    views = build_views(db)
    assert [s.id for s in views.by_grade[UNASSIGNED].students] == ["Kim-김"]
    assert views.stats.students_per_grade == {}


def test_unassigned_bucket_on_request():
    views = build_views(Database.empty(), include_unassigned=True)
    assert views.grades_list == [UNASSIGNED]
    assert views.by_grade[UNASSIGNED].students == []
    assert build_views(Database.empty()).grades_list == []


def test_students_sorted_by_english_name(schema):
    db = _db(
        schema,
        [],
        [("zoe", "서지우", "5", []), ("Anna", "이영희", "5", []), ("Max", "이민호", "5", [])],
    )
    views = build_views(db)
    assert [s.english_name for s in views.by_grade["5"].students] == ["Anna", "Max", "zoe"]


def test_views_are_rebuilt_not_merged(schema):
    db = _db(schema, ["3A\nStars"], [("Anna", "이영희", "3", ["3A\nStars"])])
    first = build_views(db)
    second = build_views(db)
    assert first.by_grade["3"] is not second.by_grade["3"]
    assert [s.id for s in first.by_grade["3"].students] == [s.id for s in second.by_grade["3"].students]


def test_filter_students(schema):
    db = _db(
        schema,
        [],
        [
            ("Anna", "이영희", "3", ["3A\nStars"]),
            ("Ben", "박민준", "3", ["3R\nComets"]),
            ("Hannah", "정하나", "4", ["3A\nStars"]),
        ],
    )
    assert {s.id for s in filter_students(db, "ANN")} == {"Anna-이영희", "Hannah-정하나"}
    assert [s.id for s in filter_students(db, "민준")] == ["Ben-박민준"]
    assert {s.id for s in filter_students(db, "", "3A Stars")} == {"Anna-이영희", "Hannah-정하나"}
    assert [s.id for s in filter_students(db, "han", "3A Stars")] == ["Hannah-정하나"]
    assert len(filter_students(db)) == 3
