from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Optional
from .errors import SnapshotError
from .model import Database
from .utils import json_default, load_json, save_json, snapshot_path

logger = logging.getLogger(__name__)


def database_from_payload(payload: Any) -> Database:
    # whole {classes, students, comments} aggregate; comments may be absent
    if not isinstance(payload, dict) or not isinstance(payload.get("classes"), dict) or not isinstance(payload.get("students"), dict):
        raise SnapshotError("snapshot must contain 'classes' and 'students' maps")
    try:
        return Database.from_dict(payload)
    except (TypeError, AttributeError) as err:
        raise SnapshotError(f"malformed snapshot entry: {err}") from err


def dumps(db: Database) -> str:
    return json.dumps(db.to_dict(), ensure_ascii=False, default=json_default)


def loads(text: str) -> Database:
    try:
        payload = json.loads(text)
    except ValueError as err:
        raise SnapshotError(f"snapshot is not JSON: {err}") from err
    return database_from_payload(payload)


def save_snapshot(db: Database, path: Optional[Path] = None) -> Path:
    path = path or snapshot_path()
    save_json(path, db.to_dict())
    logger.info("snapshot saved: %s (%d classes, %d students)", path, len(db.classes), len(db.students))
    return path


def load_snapshot(path: Optional[Path] = None) -> Optional[Database]:
    """Stored database, or None when nothing (readable) was saved yet."""
    path = path or snapshot_path()
    payload = load_json(path, None)
    if payload is None:
        return None
    db = database_from_payload(payload)
    logger.info("snapshot loaded: %s (%d classes, %d students)", path, len(db.classes), len(db.students))
    return db
