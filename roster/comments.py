from __future__ import annotations
import logging
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union
from dateutil import parser as dtparser
from .model import Comments

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = "\n\n"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class CommentKind(str, Enum):
    CLASS = "class"
    STUDENT = "student"


def _bucket(comments: Comments, kind: Union[CommentKind, str]) -> Dict[str, str]:
    kind = CommentKind(kind)
    return comments.classes if kind == CommentKind.CLASS else comments.students


def get_comment(comments: Comments, kind: Union[CommentKind, str], entity_id: str) -> str:
    return _bucket(comments, kind).get(entity_id, "")


def apply_comment(
    comments: Comments,
    kind: Union[CommentKind, str],
    entity_id: str,
    text: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Appends "<timestamp>: <text>" to the comment log of a class or student
    (a blank line between entries) and returns the whole log. Blank text is
    ignored. The entity does not have to exist in the current roster.
    """
    bucket = _bucket(comments, kind)
    existing = bucket.get(entity_id, "")
    text = (text or "").strip()
    if not text:
        return existing

    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    line = f"{stamp}: {text}"
    bucket[entity_id] = f"{existing}{ENTRY_SEPARATOR}{line}" if existing else line
    logger.info("comment added to %s %r", CommentKind(kind).value, entity_id)
    return bucket[entity_id]


def _split_stamp(entry: str) -> Tuple[Optional[datetime], str]:
    # the text may contain ": " too; the first prefix that parses as a date wins
    start = 0
    while True:
        idx = entry.find(": ", start)
        if idx < 0:
            return None, entry
        head = entry[:idx]
        try:
            return dtparser.parse(head), entry[idx + 2:]
        except (ValueError, OverflowError):
            start = idx + 1


def comment_history(log: str) -> List[Tuple[Optional[datetime], str]]:
    """
    Comment log -> [(timestamp or None, text), ...] in the order written.
    Accepts our own stamps and the locale stamps of older exports
    ("3/14/2025, 10:22:01 AM: ...").
    """
    if not log:
        return []
    out = []
    for entry in log.split(ENTRY_SEPARATOR):
        if entry.strip():
            out.append(_split_stamp(entry.strip()))
    return out
