import os
import re
import json
import unicodedata
from pathlib import Path
from typing import Any, Optional
from dateutil import parser as dtparser

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"

APPDATA = os.environ.get("APPDATA")
if APPDATA:
    USER_DATA_DIR = Path(APPDATA) / "StudentManager" / "data"
else:
    USER_DATA_DIR = DEFAULT_DATA_DIR  # fallback

def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default

def save_json(path: Path, obj: Any):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2, default=json_default)

_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP variants


def norm_text(s: Any) -> str:
    """
    Loose normalisation used to compare header labels:
    - NFC (Hangul typed on macOS arrives decomposed)
    - BOM / non-breaking spaces
    - every run of whitespace, newlines included, -> one space
    - lower
    """
    if s is None:
        return ""

    s = unicodedata.normalize("NFC", str(s))
    s = s.replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s.lower()

def cell_text(v: Any) -> str:
    # Grid cell -> str, empty for None. Strings are returned untouched.
    if v is None:
        return ""
    if isinstance(v, str):
        return v
    return str(v)

def try_parse_date(s: Any) -> Optional[str]:
    # date cells (datetime / date / "3/14" style strings) -> YYYY-MM-DD
    if s is None:
        return None

    if hasattr(s, "year") and hasattr(s, "month") and hasattr(s, "day"):
        return f"{int(s.year):04d}-{int(s.month):02d}-{int(s.day):02d}"

    txt = norm_text(s)
    if not txt:
        return None

    # "3/14", "3-14", "2025-03-14"
    if re.match(r"^\d{1,2}[./-]\d{1,2}([./-]\d{2,4})?$", txt) or re.match(r"^\d{4}[./-]\d{1,2}[./-]\d{1,2}$", txt):
        try:
            dt = dtparser.parse(txt, dayfirst=False)
        except (ValueError, OverflowError):
            return None
        return dt.strftime("%Y-%m-%d")

    return None

def json_default(o: Any):
    # openpyxl hands back datetime/time cells; snapshots keep them as ISO strings
    if hasattr(o, "isoformat"):
        return o.isoformat()
    return str(o)

def schema_path() -> Path:
    return DEFAULT_DATA_DIR / "schema.json"

def snapshot_path() -> Path:
    USER_DATA_DIR.mkdir(parents=True, exist_ok=True)
    return USER_DATA_DIR / "snapshot.json"
