from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Union

# =========================
# Level codes
# =========================
LEVEL_NAMES = {
    "R": "Rocket",
    "T": "Top",
    "H": "High",
    "A": "Ace",
    "E": "Elite",
}

KINDY_GRADE = "K"
KINDY_LEVEL = "Kindy"
KINDY_LEVEL_NAME = "Kindergarten"

# "3A", "12R" ... P has no display name and passes through as-is
_LEVEL_CODE_RE = re.compile(r"(\d+)([AEHRTP])")

MARKER_TOKEN = "F"


def level_name(code: str) -> str:
    return LEVEL_NAMES.get(code, code)


def make_student_id(english_name: str, korean_name: str) -> str:
    return f"{english_name}-{korean_name}"


def make_class_id(grade: str, level_code: str, class_name: str) -> str:
    if grade == KINDY_GRADE:
        return f"{KINDY_LEVEL} {class_name}"
    return f"{grade}{level_code} {class_name}"
# =========================

# Parse results
# =========================
@dataclass(frozen=True)
class Skip:
    """The cell does not carry a usable token; the caller drops the row/column."""
    reason: str

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class NameToken:
    english_name: str
    korean_name: str
    has_marker: bool = False

    @property
    def student_id(self) -> str:
        return make_student_id(self.english_name, self.korean_name)

    @property
    def notes(self) -> str:
        return MARKER_TOKEN if self.has_marker else ""


@dataclass(frozen=True)
class ClassToken:
    grade: str
    level_code: str
    class_name: str
    additional_info: str = ""
    schedule: str = ""
    teachers: str = ""

    @property
    def is_kindy(self) -> bool:
        return self.grade == KINDY_GRADE

    @property
    def class_id(self) -> str:
        return make_class_id(self.grade, self.level_code, self.class_name)

    @property
    def level(self) -> str:
        return KINDY_LEVEL if self.is_kindy else f"{self.grade}{self.level_code}"

    @property
    def level_name(self) -> str:
        return KINDY_LEVEL_NAME if self.is_kindy else level_name(self.level_code)

    @property
    def full_level_name(self) -> str:
        if self.is_kindy:
            return KINDY_LEVEL_NAME
        return f"Grade {self.grade} {level_name(self.level_code)}"


NameResult = Union[NameToken, Skip]
ClassResult = Union[ClassToken, Skip]
# =========================

# Parsers
# =========================
def parse_name(raw: Any) -> NameResult:
    """
    "John 김민수 F" -> NameToken("John", "김민수", has_marker=True)
    First whitespace token is the English name, the rest (joined by one space)
    is the Korean name. A standalone "F" after the English name is the marker
    and is not part of the Korean name.
    """
    if not isinstance(raw, str):
        return Skip("name_not_text")

    tokens = raw.split()
    if not tokens:
        return Skip("name_empty")

    english = tokens[0]
    rest = [t for t in tokens[1:] if t != MARKER_TOKEN]
    has_marker = len(rest) != len(tokens) - 1
    return NameToken(english, " ".join(rest), has_marker)


def _part(parts: list, i: int, default: str = "") -> str:
    return parts[i] if len(parts) > i else default


def parse_class_token(raw: Any, default_name: str = "") -> ClassResult:
    """
    Newline-packed class cell:
        line 0  grade + level code ("3A")
        line 1  class name
        line 2  additional info
        line 3  schedule
        line 4  teachers
    Missing lines become "" (the class name falls back to ``default_name``).
    """
    if not isinstance(raw, str):
        return Skip("class_not_text")

    parts = raw.split("\n")
    m = _LEVEL_CODE_RE.search(parts[0])
    if not m:
        return Skip("no_level_code")

    return ClassToken(
        grade=m.group(1),
        level_code=m.group(2),
        class_name=_part(parts, 1, default_name),
        additional_info=_part(parts, 2),
        schedule=_part(parts, 3),
        teachers=_part(parts, 4),
    )


def parse_kindy_class_token(raw: Any) -> ClassResult:
    # Kindergarten cells carry only the class name on line 0; grade is always K
    if not isinstance(raw, str):
        return Skip("class_not_text")

    parts = raw.split("\n")
    if not parts[0].strip():
        return Skip("class_empty")

    return ClassToken(
        grade=KINDY_GRADE,
        level_code=KINDY_GRADE,
        class_name=parts[0],
        additional_info=_part(parts, 2),
    )
