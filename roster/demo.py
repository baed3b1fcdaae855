"""
Synthetic roster used when an upload cannot be decoded, so the dashboard
always receives a structurally valid Database.
"""
from __future__ import annotations
import random
from datetime import datetime
from typing import Optional
from .comments import CommentKind, apply_comment
from .entity import DatabaseBuilder
from .extract import KINDY_GRADE, ClassToken, NameToken
from .infer import SheetSchema
from .model import Comments, Database

DEMO_GRADES = [KINDY_GRADE, "1", "2", "3", "4", "5", "6"]
DEMO_LEVELS = ["R", "T", "H", "A", "E"]
DEMO_CLASS_NAMES = ["Stars", "Galaxy", "Moon", "Planets", "Rainbow"]
DEMO_KINDY_CLASSES = ["Yellow", "Blue", "Red", "Green"]
FIRST_NAMES = ["Emma", "Noah", "Olivia", "Liam", "Sophia", "Jackson", "Ava", "Aiden", "Isabella", "Lucas"]
LAST_NAMES = ["김", "이", "박", "최", "정", "강", "조", "윤", "장", "임"]

KINDY_STUDENTS = 40
GRADE_STUDENTS = 30
SAMPLE_COMMENTS = 10


def _demo_classes(grade: str):
    if grade == KINDY_GRADE:
        names = [(KINDY_GRADE, n) for n in DEMO_KINDY_CLASSES]
    else:
        names = [(code, DEMO_CLASS_NAMES[i % len(DEMO_CLASS_NAMES)]) for i, code in enumerate(DEMO_LEVELS)]
    for idx, (code, name) in enumerate(names):
        yield ClassToken(
            grade=grade,
            level_code=code,
            class_name=name,
            schedule=f"M-F {9 + idx}:00-{10 + idx}:00",
            teachers=f"Teacher {idx + 1}",
        )


def demo_database(seed: int = 0, now: Optional[datetime] = None) -> Database:
    builder = DatabaseBuilder(SheetSchema.from_dict())
    counter = 0

    for grade in DEMO_GRADES:
        classes = [builder.merge_class(tok) for tok in _demo_classes(grade)]
        count = KINDY_STUDENTS if grade == KINDY_GRADE else GRADE_STUDENTS
        for i in range(count):
            english = FIRST_NAMES[counter % len(FIRST_NAMES)]
            korean = f"{LAST_NAMES[counter % len(LAST_NAMES)]}{counter}"
            student = builder.merge_student(NameToken(english, korean, has_marker=i % 10 == 0), grade)
            builder.link(student, classes[i % len(classes)])
            counter += 1

    rng = random.Random(seed)
    comments = Comments()
    class_ids = sorted(builder.classes)
    student_ids = sorted(builder.students)
    for i in range(SAMPLE_COMMENTS):
        apply_comment(comments, CommentKind.CLASS, rng.choice(class_ids), f"Sample class comment {i + 1}", now=now)
        apply_comment(comments, CommentKind.STUDENT, rng.choice(student_ids), f"Sample student comment {i + 1}", now=now)

    return builder.finish(comments)
