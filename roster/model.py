"""
Roster model: Classes, Students and the comment overlay.

Dict form uses the camelCase keys of the JSON files exported by the previous
dashboard (``englishName``, ``levelCode`` ...), so those exports load as-is.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

# Optional per-student columns copied from roster sheets
STUDENT_DETAIL_FIELDS = (
    "consent",
    "hold",
    "feedback1",
    "feedback2",
    "phone_number",
    "email",
    "start_date",
    "other_details",
    "consultations",
)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def _snake(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


def _to_dict(obj) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        # details never seen for this student are left out, like in the exports
        if value is None and f.name in STUDENT_DETAIL_FIELDS:
            continue
        out[_camel(f.name)] = list(value) if isinstance(value, list) else value
    return out


def _kwargs(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    kw = {}
    for k, v in data.items():
        name = _snake(k)
        if name in known:
            kw[name] = v
    return kw


@dataclass
class Student:
    id: str
    english_name: str
    korean_name: str
    grade: str = ""
    classes: List[str] = field(default_factory=list)
    notes: str = ""

    consent: Any = None
    hold: Any = None
    feedback1: Any = None
    feedback2: Any = None
    phone_number: Any = None
    email: Any = None
    start_date: Any = None
    other_details: Any = None
    consultations: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return _to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Student":
        kw = _kwargs(cls, data)
        kw["classes"] = list(kw.get("classes") or [])
        kw.setdefault("english_name", "")
        kw.setdefault("korean_name", "")
        kw["grade"] = kw.get("grade") or ""
        kw["notes"] = kw.get("notes") or ""
        return cls(**kw)


@dataclass
class ClassInfo:
    id: str
    name: str
    grade: str
    level_code: str
    level: str
    level_name: str
    full_level_name: str
    additional_info: str = ""
    schedule: str = ""
    teachers: str = ""
    students: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClassInfo":
        kw = _kwargs(cls, data)
        kw["students"] = list(kw.get("students") or [])
        for name in ("name", "grade", "level_code", "level", "level_name", "full_level_name",
                     "additional_info", "schedule", "teachers"):
            kw[name] = kw.get(name) or ""
        return cls(**kw)


@dataclass
class Comments:
    """Free-text notes keyed by class id / student id. Ingestion never touches them."""
    classes: Dict[str, str] = field(default_factory=dict)
    students: Dict[str, str] = field(default_factory=dict)

    def copy(self) -> "Comments":
        return Comments(dict(self.classes), dict(self.students))

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {"classes": dict(self.classes), "students": dict(self.students)}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Comments":
        data = data or {}
        return cls(dict(data.get("classes") or {}), dict(data.get("students") or {}))


@dataclass(frozen=True)
class Database:
    classes: Dict[str, ClassInfo]
    students: Dict[str, Student]
    comments: Comments = field(default_factory=Comments)

    def with_comments(self, comments: Comments) -> "Database":
        return Database(self.classes, self.students, comments)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classes": {k: c.to_dict() for k, c in self.classes.items()},
            "students": {k: s.to_dict() for k, s in self.students.items()},
            "comments": self.comments.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Database":
        return cls(
            classes={k: ClassInfo.from_dict(v) for k, v in (data.get("classes") or {}).items()},
            students={k: Student.from_dict(v) for k, v in (data.get("students") or {}).items()},
            comments=Comments.from_dict(data.get("comments")),
        )

    @classmethod
    def empty(cls) -> "Database":
        return cls({}, {}, Comments())
