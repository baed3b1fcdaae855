from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple
from .extract import KINDY_GRADE
from .model import ClassInfo, Database, Student

LEVEL_PRIORITY = {"R": 1, "T": 2, "H": 3, "A": 4, "E": 5}
OTHER_LEVEL_PRIORITY = 99
UNASSIGNED = "Unassigned"


@dataclass
class GradeBucket:
    classes: List[ClassInfo] = field(default_factory=list)
    students: List[Student] = field(default_factory=list)


@dataclass(frozen=True)
class Stats:
    total_students: int
    total_classes: int
    students_per_grade: Dict[str, int]


@dataclass(frozen=True)
class GradeViews:
    """Derived projection of a Database. Always rebuilt, never merged into."""
    by_grade: Dict[str, GradeBucket]
    grades_list: List[str]
    stats: Stats

    # both browsing views read the same buckets
    @property
    def classes_by_grade(self) -> Dict[str, GradeBucket]:
        return self.by_grade

    @property
    def students_by_grade(self) -> Dict[str, GradeBucket]:
        return self.by_grade
# =========================

# Ordering
# =========================
def class_sort_key(info: ClassInfo) -> Tuple[int, str, str]:
    return (LEVEL_PRIORITY.get(info.level_code, OTHER_LEVEL_PRIORITY), info.name.casefold(), info.id)


def student_sort_key(student: Student) -> Tuple[str, str]:
    return (student.english_name.casefold(), student.id)


def grade_sort_key(grade: str) -> Tuple[int, int, str]:
    # K, then 1, 2, ... numerically, then anything else, Unassigned last
    if grade == KINDY_GRADE:
        return (0, 0, "")
    if grade == UNASSIGNED:
        return (3, 0, "")
    if grade.isdigit():
        return (1, int(grade), "")
    return (2, 0, grade)


def sort_grades(grades: Iterable[str]) -> List[str]:
    return sorted(set(grades), key=grade_sort_key)
# =========================

# Projection
# =========================
def student_grades(student: Student, classes: Dict[str, ClassInfo]) -> Set[str]:
    """Own grade plus the grade of every class the student sits in."""
    grades = set()
    if student.grade:
        grades.add(student.grade)
    for cid in student.classes:
        info = classes.get(cid)
        if info is not None and info.grade:
            grades.add(info.grade)
    return grades


def compute_stats(db: Database) -> Stats:
    # per-grade counts use student.grade only, not the bucket union
    per_grade: Dict[str, int] = {}
    for student in db.students.values():
        if student.grade:
            per_grade[student.grade] = per_grade.get(student.grade, 0) + 1
    return Stats(
        total_students=len(db.students),
        total_classes=len(db.classes),
        students_per_grade=per_grade,
    )


def build_views(db: Database, include_unassigned: bool = False) -> GradeViews:
    """
    Groups classes and students by grade.
    - classes: by class grade, sorted by level (R, T, H, A, E, others) then name
    - students: under every grade from ``student_grades``; none -> Unassigned;
      sorted by English name
    """
    by_grade: Dict[str, GradeBucket] = {}

    for info in db.classes.values():
        if info.grade:
            by_grade.setdefault(info.grade, GradeBucket()).classes.append(info)

    for student in db.students.values():
        grades = student_grades(student, db.classes) or {UNASSIGNED}
        for g in grades:
            # a grade with students but no class still gets a bucket
            by_grade.setdefault(g, GradeBucket()).students.append(student)

    if include_unassigned:
        by_grade.setdefault(UNASSIGNED, GradeBucket())

    for bucket in by_grade.values():
        bucket.classes.sort(key=class_sort_key)
        bucket.students.sort(key=student_sort_key)

    grades_list = sort_grades(by_grade)
    ordered = {g: by_grade[g] for g in grades_list}
    return GradeViews(by_grade=ordered, grades_list=grades_list, stats=compute_stats(db))
# =========================

# Search
# =========================
def filter_students(db: Database, term: str = "", class_filter: str = "all") -> List[Student]:
    # name search over English and Korean names, optionally within one class
    t = (term or "").lower()
    out = []
    for student in db.students.values():
        name_ok = t in student.english_name.lower() or t in student.korean_name.lower()
        class_ok = class_filter == "all" or class_filter in student.classes
        if name_ok and class_ok:
            out.append(student)
    return out
