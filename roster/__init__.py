"""
This package contains:
- workbook decoding into sheet grids (XLSX)
- sheet classification (grade rosters, kindergarten roster, day schedules)
- token extraction from packed class / name cells
- entity resolution and merging into Classes and Students
- grade grouping, ordering and statistics
- the comment overlay, snapshots and the demo roster
- report export
"""
from .errors import IngestionError, StructuralDecodeError, SnapshotError
from .extract import parse_name, parse_class_token, level_name
from .model import Student, ClassInfo, Comments, Database
from .entity import DatabaseBuilder, coalesce
from .aggregate import build_views, filter_students
from .comments import CommentKind, apply_comment, comment_history
from .pipeline import IngestionResult, ingest, ingest_workbook, ingest_or_demo, rebuild_views, RosterState
from .snapshot import save_snapshot, load_snapshot
from .export import export_to_excel_bytes

__all__ = [
    "IngestionError",
    "StructuralDecodeError",
    "SnapshotError",
    "parse_name",
    "parse_class_token",
    "level_name",
    "Student",
    "ClassInfo",
    "Comments",
    "Database",
    "DatabaseBuilder",
    "coalesce",
    "build_views",
    "filter_students",
    "CommentKind",
    "apply_comment",
    "comment_history",
    "IngestionResult",
    "ingest",
    "ingest_workbook",
    "ingest_or_demo",
    "rebuild_views",
    "RosterState",
    "save_snapshot",
    "load_snapshot",
    "export_to_excel_bytes",
]
