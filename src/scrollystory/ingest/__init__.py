"""Ingestion: table sources, record mapping, and validation."""

from __future__ import annotations

from .mapper import header_index, map_steps, map_story, map_tables
from .sources import SheetsApiSource, TableSource, WorkbookSource
from .validator import validate_steps, validate_story

__all__ = [
    "TableSource",
    "WorkbookSource",
    "SheetsApiSource",
    "header_index",
    "map_story",
    "map_steps",
    "map_tables",
    "validate_story",
    "validate_steps",
]
