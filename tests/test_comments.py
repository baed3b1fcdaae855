from __future__ import annotations
from datetime import datetime

import pytest

from roster.comments import CommentKind, apply_comment, comment_history, get_comment
from roster.model import Comments

T1 = datetime(2025, 3, 14, 10, 22, 1)
T2 = datetime(2025, 3, 15, 9, 0, 0)


def test_first_comment():
    comments = Comments()
    log = apply_comment(comments, CommentKind.CLASS, "3A Stars", "  Moved to room 4  ", now=T1)
    assert log == "2025-03-14 10:22:01: Moved to room 4"
    assert comments.classes == {"3A Stars": log}
    assert comments.students == {}


def test_comments_append_with_blank_line():
    comments = Comments()
    apply_comment(comments, "student", "Anna-이영희", "Met parents", now=T1)
    log = apply_comment(comments, "student", "Anna-이영희", "Level test: passed", now=T2)
    assert log == "2025-03-14 10:22:01: Met parents\n\n2025-03-15 09:00:00: Level test: passed"
    assert get_comment(comments, CommentKind.STUDENT, "Anna-이영희") == log


def test_blank_comment_is_ignored():
    comments = Comments()
    assert apply_comment(comments, CommentKind.STUDENT, "Anna-이영희", "   ") == ""
    assert comments.students == {}


def test_comment_for_unknown_entity_is_kept():
    comments = Comments()
    apply_comment(comments, CommentKind.CLASS, "9Z Nowhere", "still recorded", now=T1)
    assert get_comment(comments, "class", "9Z Nowhere").endswith("still recorded")


def test_unknown_kind_raises():
    with pytest.raises(ValueError):
        apply_comment(Comments(), "teacher", "x", "y")


def test_comment_history():
    log = "2025-03-14 10:22:01: Met parents\n\n2025-03-15 09:00:00: Level test: passed"
    assert comment_history(log) == [
        (T1, "Met parents"),
        (T2, "Level test: passed"),
    ]


def test_comment_history_reads_locale_stamps():
    log = "3/14/2025, 10:22:01 AM: Called home\n\nplain note without stamp"
    assert comment_history(log) == [
        (T1, "Called home"),
        (None, "plain note without stamp"),
    ]


def test_comment_history_empty():
    assert comment_history("") == []
