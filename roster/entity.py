from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
from .errors import IngestionError
from .extract import (ClassToken, NameToken, Skip, parse_class_token, parse_kindy_class_token, parse_name)
from .header_detect import Grid, find_header_row, find_marker_rows, row_cell
from .infer import SchemaIssue, SheetRole, SheetSchema, map_student_columns, roster_grade
from .model import ClassInfo, Comments, Database, Student
from .utils import cell_text

logger = logging.getLogger(__name__)
# =========================

# Outcomes
# =========================
class Status(str, Enum):
    ACCEPTED = "accepted"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass(frozen=True)
class Outcome:
    status: Status
    sheet: str
    reason: str = ""
    row: Optional[int] = None      # 0-based grid row
    column: Optional[int] = None   # 0-based grid column


@dataclass
class IngestReport:
    outcomes: List[Outcome] = field(default_factory=list)
    schema_issues: List[SchemaIssue] = field(default_factory=list)
    demo: bool = False

    def by_status(self, status: Status, sheet: Optional[str] = None) -> List[Outcome]:
        return [o for o in self.outcomes if o.status == status and (sheet is None or o.sheet == sheet)]

    def skipped(self, sheet: Optional[str] = None) -> List[Outcome]:
        return self.by_status(Status.SKIPPED, sheet)

    def accepted(self, sheet: Optional[str] = None) -> List[Outcome]:
        return self.by_status(Status.ACCEPTED, sheet)

    def fatal(self) -> List[Outcome]:
        return self.by_status(Status.FATAL)
# =========================

# Merge policy
# =========================
def _empty(v: Any) -> bool:
    return v is None or v == ""


def coalesce(existing: Any, incoming: Any) -> Any:
    """First non-empty wins: a set value is never replaced, an empty one is filled."""
    return incoming if _empty(existing) else existing


def _add_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)
# =========================

# Builder
# =========================
class DatabaseBuilder:
    """
    Mutable, private model under construction. Sheet passes resolve names and
    class tokens into entities and merge them here; ``finish`` validates the
    cross references and hands back the finished ``Database``.
    """

    def __init__(self, schema: SheetSchema):
        self.schema = schema
        self.classes: Dict[str, ClassInfo] = {}
        self.students: Dict[str, Student] = {}
        self.report = IngestReport()
        self._finished = False

    # ---- outcome log

    def _record(self, status: Status, sheet: str, reason: str = "", row: Optional[int] = None, column: Optional[int] = None) -> None:
        self.report.outcomes.append(Outcome(status, sheet, reason, row, column))
        if status == Status.SKIPPED:
            logger.debug("skip sheet=%r row=%s col=%s: %s", sheet, row, column, reason)

    def _check_open(self) -> None:
        if self._finished:
            raise RuntimeError("DatabaseBuilder.finish() was already called")

    # ---- entity primitives

    def merge_class(self, token: ClassToken, schedule: Optional[str] = None, teachers: Optional[str] = None) -> ClassInfo:
        """
        Class for ``token``; created on first sighting, otherwise its
        schedule / teachers / additional info are filled only where still empty.
        """
        self._check_open()
        if schedule is None:
            schedule = token.schedule
        if teachers is None:
            teachers = token.teachers

        info = self.classes.get(token.class_id)
        if info is None:
            info = ClassInfo(
                id=token.class_id,
                name=token.class_name,
                grade=token.grade,
                level_code=token.level_code,
                level=token.level,
                level_name=token.level_name,
                full_level_name=token.full_level_name,
                additional_info=token.additional_info,
                schedule=schedule,
                teachers=teachers,
            )
            self.classes[info.id] = info
            return info

        info.schedule = coalesce(info.schedule, schedule)
        info.teachers = coalesce(info.teachers, teachers)
        info.additional_info = coalesce(info.additional_info, token.additional_info)
        return info

    def merge_student(self, name: NameToken, grade: str) -> Student:
        # grade and notes come from the first sheet that supplies them
        self._check_open()
        student = self.students.get(name.student_id)
        if student is None:
            student = Student(
                id=name.student_id,
                english_name=name.english_name,
                korean_name=name.korean_name,
                grade=grade,
                notes=name.notes,
            )
            self.students[student.id] = student
            return student

        student.grade = coalesce(student.grade, grade)
        return student

    def link(self, student: Student, info: ClassInfo) -> None:
        _add_unique(student.classes, info.id)
        _add_unique(info.students, student.id)

    # ---- sheet passes

    def roster_pass(self, sheet: str, grid: Grid, role: SheetRole = SheetRole.GRADE_ROSTER) -> None:
        """
        One student per row below the header. Column A holds the class token,
        column B the name; recognised header columns are copied onto the student.
        """
        self._check_open()
        if len(grid) < 2:
            self._record(Status.SKIPPED, sheet, "too_few_rows")
            return

        kindy = False
        header_idx = find_header_row(grid, self.schema.roster_header)
        if header_idx is None and role == SheetRole.KINDY_ROSTER:
            header_idx = find_header_row(grid, self.schema.kindy_header)
            kindy = True
        if header_idx is None:
            self._record(Status.SKIPPED, sheet, "no_header_row")
            logger.warning("roster sheet %r has no header row, skipped", sheet)
            return

        grade = roster_grade(sheet, self.schema)
        columns, issues = map_student_columns(grid[header_idx], self.schema, sheet)
        self.report.schema_issues.extend(issues)

        accepted = skipped = 0
        for i in range(header_idx + 1, len(grid)):
            row = grid[i]
            if not row or len(row) < 2:
                continue

            name = parse_name(row[1])
            if isinstance(name, Skip):
                if row[1] is not None:
                    self._record(Status.SKIPPED, sheet, name.reason, row=i)
                    skipped += 1
                continue

            student = self.merge_student(name, grade)

            token = parse_kindy_class_token(row[0]) if kindy else parse_class_token(row[0])
            if isinstance(token, ClassToken) and token.class_name:
                self.link(student, self.merge_class(token))
                reason = ""
            else:
                reason = token.reason if isinstance(token, Skip) else "no_class_name"

            self._copy_details(student, row, columns)
            self._record(Status.ACCEPTED, sheet, reason, row=i)
            accepted += 1

        self._record(Status.ACCEPTED, sheet, "kindy_roster" if kindy else "roster")
        logger.info("roster sheet %r: %d rows accepted, %d skipped", sheet, accepted, skipped)

    def _copy_details(self, student: Student, row: Sequence[Any], columns: Dict[int, str]) -> None:
        for c, attr in columns.items():
            if c >= len(row) or row[c] is None:
                continue
            setattr(student, attr, row[c])

    def schedule_pass(self, sheet: str, grid: Grid) -> None:
        """
        One class per column right of column A. The Class / Time / Teacher rows
        describe the class; every name below the Teacher row is enrolled in it.
        """
        self._check_open()
        if len(grid) < 3:
            self._record(Status.SKIPPED, sheet, "too_few_rows")
            return

        markers = find_marker_rows(grid, self.schema.schedule_markers)
        if markers is None:
            self._record(Status.SKIPPED, sheet, "missing_marker_rows")
            logger.warning("schedule sheet %r lacks one of %s rows, skipped", sheet, list(self.schema.schedule_markers))
            return

        class_idx, time_idx, teacher_idx = markers
        class_row = grid[class_idx]
        kindy = sheet == self.schema.kindy_sheet

        columns = 0
        for j in range(1, len(class_row)):
            raw = class_row[j]
            if not isinstance(raw, str) or raw == "":
                continue

            token = parse_kindy_class_token(raw) if kindy else parse_class_token(raw, default_name=f"Class {j}")
            if isinstance(token, Skip):
                self._record(Status.SKIPPED, sheet, token.reason, row=class_idx, column=j)
                continue

            info = self.merge_class(
                token,
                schedule=cell_text(row_cell(grid[time_idx], j)),
                teachers=cell_text(row_cell(grid[teacher_idx], j)),
            )

            for i in range(teacher_idx + 1, len(grid)):
                name = parse_name(row_cell(grid[i], j))
                if isinstance(name, Skip):
                    continue
                self.link(self.merge_student(name, token.grade), info)

            self._record(Status.ACCEPTED, sheet, row=class_idx, column=j)
            columns += 1

        self._record(Status.ACCEPTED, sheet, "schedule")
        logger.info("schedule sheet %r: %d class columns merged", sheet, columns)

    # ---- hand-off

    def validate(self) -> List[str]:
        # every class <-> student reference must exist and point back
        problems = []
        for sid, student in self.students.items():
            for cid in student.classes:
                info = self.classes.get(cid)
                if info is None or sid not in info.students:
                    problems.append(f"student {sid!r} -> class {cid!r} not mirrored")
        for cid, info in self.classes.items():
            for sid in info.students:
                student = self.students.get(sid)
                if student is None or cid not in student.classes:
                    problems.append(f"class {cid!r} -> student {sid!r} not mirrored")
        return problems

    def finish(self, comments: Optional[Comments] = None) -> Database:
        self._check_open()
        problems = self.validate()
        if problems:
            raise IngestionError("inconsistent roster links: " + "; ".join(problems[:5]))
        self._finished = True
        return Database(self.classes, self.students, comments if comments is not None else Comments())
