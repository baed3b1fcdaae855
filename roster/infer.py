from __future__ import annotations
import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple
from rapidfuzz import fuzz
from .utils import norm_text, schema_path, load_json

logger = logging.getLogger(__name__)

# Template contract of the academy workbook. data/schema.json may override any key.
DEFAULT_SCHEMA: Dict[str, Any] = {
    "version": 1,
    "kindy_sheet": "2025 Kindy",
    "grade_sheet_pattern": r"^G(\d+)",
    "schedule_sheet_markers": ["MonFri", "MonWed", "TueThu", "WedFri"],
    "roster_header": ["Class/Level/Time", "Name "],
    "kindy_header": ["Class", "Name"],
    "schedule_markers": ["Class", "Time", "Teacher"],
    "student_columns": {
        "Consent": "consent",
        "Hold": "hold",
        "Feedback\n1-5": "feedback1",
        "Feedback\n7-11": "feedback2",
        "Phone number ": "phone_number",
        "email": "email",
        "Start Date\nCOUNTER\n월/일 or 월-일\nONLY": "start_date",
        "Other Details\n(lvl up, class transfer, etc.)": "other_details",
        "상담 내용\nDate/상담Type/Staff": "consultations",
    },
}

NEAR_MISS_SCORE = 85


@dataclass(frozen=True)
class SheetSchema:
    version: int
    kindy_sheet: str
    grade_sheet_pattern: str
    schedule_sheet_markers: Tuple[str, ...]
    roster_header: Tuple[str, str]
    kindy_header: Tuple[str, str]
    schedule_markers: Tuple[str, str, str]
    student_columns: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]] = None) -> "SheetSchema":
        data = dict(DEFAULT_SCHEMA)
        if isinstance(raw, dict):
            data.update({k: v for k, v in raw.items() if k in DEFAULT_SCHEMA and v is not None})
        return cls(
            version=int(data["version"]),
            kindy_sheet=str(data["kindy_sheet"]),
            grade_sheet_pattern=str(data["grade_sheet_pattern"]),
            schedule_sheet_markers=tuple(data["schedule_sheet_markers"]),
            roster_header=tuple(data["roster_header"]),
            kindy_header=tuple(data["kindy_header"]),
            schedule_markers=tuple(data["schedule_markers"]),
            student_columns=dict(data["student_columns"]),
        )


def load_schema() -> SheetSchema:
    return SheetSchema.from_dict(load_json(schema_path(), {}))
# =========================

# Sheet roles
# =========================
class SheetRole(str, Enum):
    GRADE_ROSTER = "grade_roster"
    KINDY_ROSTER = "kindy_roster"
    DAY_SCHEDULE = "day_schedule"


def _is_grade_roster(name: str, schema: SheetSchema) -> bool:
    return re.match(schema.grade_sheet_pattern, name) is not None


def _is_kindy_roster(name: str, schema: SheetSchema) -> bool:
    return name == schema.kindy_sheet


def _is_day_schedule(name: str, schema: SheetSchema) -> bool:
    return name == schema.kindy_sheet or any(m in name for m in schema.schedule_sheet_markers)


# role -> predicate; pass order follows this table
ROLE_RULES = [
    (SheetRole.GRADE_ROSTER, _is_grade_roster),
    (SheetRole.KINDY_ROSTER, _is_kindy_roster),
    (SheetRole.DAY_SCHEDULE, _is_day_schedule),
]


def classify_sheet(name: str, schema: SheetSchema) -> FrozenSet[SheetRole]:
    """
    Roles a sheet plays, decided from its name alone. The kindergarten sheet
    is both a roster and a schedule; a sheet matching no rule has no role.
    """
    return frozenset(role for role, rule in ROLE_RULES if rule(name, schema))


def plan_sheets(sheet_names: Sequence[str], schema: SheetSchema) -> List[Tuple[SheetRole, str]]:
    """
    Ordered (role, sheet) passes: every grade roster, then the kindergarten
    roster, then every day-schedule sheet. Workbook order is kept inside a role.
    """
    roles = {name: classify_sheet(name, schema) for name in sheet_names}
    plan: List[Tuple[SheetRole, str]] = []
    for role, _ in ROLE_RULES:
        for name in sheet_names:
            if role in roles[name]:
                plan.append((role, name))

    for name in sheet_names:
        if not roles[name]:
            logger.debug("sheet %r matches no role, ignored", name)
    return plan


def roster_grade(sheet_name: str, schema: SheetSchema) -> str:
    """
    Grade of a roster sheet, read with ``grade_sheet_pattern``: its first
    group when it has one ("^G(\\d+)": "G3" -> "3"), else the first run of
    digits in the matched text. The kindergarten sheet is "K".
    """
    if sheet_name == schema.kindy_sheet or "Kindy" in sheet_name:
        return "K"
    m = re.match(schema.grade_sheet_pattern, sheet_name)
    if m is None:
        return ""
    if m.re.groups and m.group(1):
        return m.group(1)
    digits = re.search(r"\d+", m.group(0))
    return digits.group(0) if digits else ""
# =========================

# Student column contract
# =========================
@dataclass(frozen=True)
class SchemaIssue:
    sheet: str
    column: int
    label: str
    expected: str
    kind: str  # "normalized_match" | "near_miss"


def map_student_columns(
    header_row: Sequence[Any],
    schema: SheetSchema,
    sheet: str = "",
) -> Tuple[Dict[int, str], List[SchemaIssue]]:
    """
    Header row -> {column index: Student field}.
    Exact labels map silently. A label equal only after whitespace/case
    normalisation still maps but is reported; a label that merely resembles a
    known one is reported and left unmapped.
    """
    exact = schema.student_columns
    loose = {norm_text(label): label for label in exact}
    structural = {norm_text(x) for x in (*schema.roster_header, *schema.kindy_header)}

    mapping: Dict[int, str] = {}
    issues: List[SchemaIssue] = []

    for c, header in enumerate(header_row):
        if header is None or not isinstance(header, str):
            continue
        if header in exact:
            mapping[c] = exact[header]
            continue

        key = norm_text(header)
        if not key or key in structural:
            continue

        if key in loose:
            expected = loose[key]
            mapping[c] = exact[expected]
            issues.append(SchemaIssue(sheet, c, header, expected, "normalized_match"))
            continue

        best_label, best_score = "", 0.0
        for k, label in loose.items():
            sc = fuzz.ratio(key, k)
            if sc > best_score:
                best_label, best_score = label, sc
        if best_score >= NEAR_MISS_SCORE:
            issues.append(SchemaIssue(sheet, c, header, best_label, "near_miss"))

    for issue in issues:
        logger.warning(
            "schema v%s: sheet %r column %d header %r vs expected %r (%s)",
            schema.version, issue.sheet, issue.column, issue.label, issue.expected, issue.kind,
        )
    return mapping, issues
