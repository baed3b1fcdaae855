from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, Mapping, Optional, Union
from .aggregate import GradeBucket, GradeViews, Stats, build_views
from .comments import CommentKind, apply_comment
from .demo import demo_database
from .entity import DatabaseBuilder, IngestReport, Outcome, Status
from .errors import IngestionError, StructuralDecodeError
from .header_detect import Grid
from .infer import SheetRole, SheetSchema, load_schema, plan_sheets
from .ingest import read_workbook
from .model import Comments, Database

logger = logging.getLogger(__name__)

Sheets = Mapping[str, Grid]
GridProvider = Union[Sheets, Callable[[], Sheets]]


@dataclass(frozen=True)
class IngestionResult:
    database: Database
    views: GradeViews
    report: IngestReport = field(default_factory=IngestReport)

    @property
    def classes_by_grade(self) -> Dict[str, GradeBucket]:
        return self.views.classes_by_grade

    @property
    def students_by_grade(self) -> Dict[str, GradeBucket]:
        return self.views.students_by_grade

    @property
    def grades_list(self):
        return self.views.grades_list

    @property
    def stats(self) -> Stats:
        return self.views.stats


def _decode(grid_provider: GridProvider) -> Dict[str, Grid]:
    try:
        sheets = grid_provider() if callable(grid_provider) else grid_provider
        return {str(name): list(grid or []) for name, grid in sheets.items()}
    except Exception as err:
        logger.exception("workbook could not be decoded")
        raise StructuralDecodeError(f"Error processing file: {err}") from err


def ingest(
    grid_provider: GridProvider,
    comments: Optional[Comments] = None,
    schema: Optional[SheetSchema] = None,
) -> IngestionResult:
    """
    Full re-ingest of a decoded workbook.

    Sheets are merged in a fixed order (grade rosters, kindergarten roster,
    day schedules) into a private builder; bad rows, columns and sheets are
    skipped and logged in ``report``. ``comments`` are carried over untouched.
    Only a decode failure raises (``StructuralDecodeError``).
    """
    sheets = _decode(grid_provider)
    schema = schema or load_schema()

    builder = DatabaseBuilder(schema)
    for role, name in plan_sheets(list(sheets), schema):
        if role == SheetRole.DAY_SCHEDULE:
            builder.schedule_pass(name, sheets[name])
        else:
            builder.roster_pass(name, sheets[name], role)

    db = builder.finish(comments.copy() if comments is not None else Comments())
    views = build_views(db)
    logger.info(
        "ingested %d sheets: %d classes, %d students, %d rows skipped",
        len(sheets), views.stats.total_classes, views.stats.total_students, len(builder.report.skipped()),
    )
    return IngestionResult(db, views, builder.report)


def ingest_workbook(
    data: bytes,
    comments: Optional[Comments] = None,
    schema: Optional[SheetSchema] = None,
    expand_merged: bool = False,
) -> IngestionResult:
    return ingest(lambda: read_workbook(data, expand_merged=expand_merged), comments, schema)


def rebuild_views(db: Database) -> IngestionResult:
    # imported / persisted snapshots skip ingestion entirely
    return IngestionResult(db, build_views(db))


def demo_result(comments: Optional[Comments] = None, now: Optional[datetime] = None) -> IngestionResult:
    db = demo_database(now=now)
    if comments is not None:
        db = db.with_comments(comments.copy())
    return IngestionResult(db, build_views(db, include_unassigned=True), IngestReport(demo=True))


def ingest_or_demo(
    data: bytes,
    comments: Optional[Comments] = None,
    schema: Optional[SheetSchema] = None,
) -> IngestionResult:
    """``ingest_workbook``, falling back to the demo roster when the file is unreadable."""
    try:
        return ingest_workbook(data, comments, schema)
    except IngestionError as err:
        logger.warning("ingestion failed, using demo data: %s", err)
        result = demo_result(comments)
        result.report.outcomes.append(Outcome(Status.FATAL, "", str(err)))
        return result


async def ingest_upload(
    read: Callable[[], Awaitable[bytes]],
    comments: Optional[Comments] = None,
    schema: Optional[SheetSchema] = None,
) -> IngestionResult:
    # the byte read is the only suspension point; ingestion itself blocks
    data = await read()
    return ingest_or_demo(data, comments, schema)


class RosterState:
    """
    Current result seen by readers. A new result is built aside and swapped
    in with one assignment, so a half-built Database is never visible.
    Callers serialise uploads.
    """

    def __init__(self, result: Optional[IngestionResult] = None):
        self.result = result or rebuild_views(Database.empty())

    @property
    def database(self) -> Database:
        return self.result.database

    def upload(self, data: bytes, save: Optional[Callable[[Database], object]] = None) -> IngestionResult:
        """
        Ingests ``data`` and swaps the result in. ``save`` receives the new
        Database only when it came from the workbook; demo data never
        replaces a stored roster.
        """
        result = ingest_or_demo(data, comments=self.database.comments)
        self.result = result
        if save is not None:
            if result.report.demo:
                logger.warning("demo data shown, stored roster left untouched")
            else:
                save(result.database)
        return result

    def replace(self, db: Database) -> IngestionResult:
        result = rebuild_views(db)
        self.result = result
        return result

    def comment(self, kind: Union[CommentKind, str], entity_id: str, text: str) -> str:
        return apply_comment(self.database.comments, kind, entity_id, text)
