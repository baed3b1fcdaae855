"""Errors raised by the roster pipeline."""
from __future__ import annotations


class IngestionError(RuntimeError):
    """The whole ingestion call failed; nothing was swapped in."""


class StructuralDecodeError(IngestionError):
    """The workbook bytes (or the grid provider) could not be decoded at all."""


class SnapshotError(ValueError):
    """A snapshot payload is not a ``{classes, students, comments}`` aggregate."""


__all__ = [
    "IngestionError",
    "StructuralDecodeError",
    "SnapshotError",
]
