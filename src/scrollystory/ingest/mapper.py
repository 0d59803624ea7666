"""
Record mapper: raw sheet rows -> typed records.

Both sheets share the same shape (header row, then data rows), so mapping is
one idea applied twice:

1. Build a header -> column-index map, lowercasing and trimming each header
   cell (``"ContentType"``, ``" contenttype "`` and ``"CONTENTTYPE"`` are the
   same column).
2. Look each logical field up by its lowercase, separator-free name.

A column that is not in the sheet maps to ``None``. Absence is reported by
the validator, never here; the only mapping error is a sheet with no header
row at all.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from scrollystory.core.contracts.step import STEP_COLUMNS, StepRecord
from scrollystory.core.contracts.story import STORY_COLUMNS, StoryRecord
from scrollystory.core.contracts.tables import STEPS_SHEET, STORY_SHEET, Cell, RawTables
from scrollystory.core.errors import MalformedSource


def _clean(value: object) -> Cell:
    """Normalize a raw cell: strip strings, map blanks to ``None``."""
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, int | float):
        return value
    # Dates and other workbook cell types are passed on as text.
    return str(value)


def header_index(headers: Sequence[object]) -> dict[str, int]:
    """Map normalized header names to their column index.

    Empty header cells are skipped. When a header repeats, the rightmost
    column wins.
    """
    index: dict[str, int] = {}
    for i, header in enumerate(headers):
        if header is None:
            continue
        key = str(header).strip().lower()
        if key:
            index[key] = i
    return index


def _cell(row: Sequence[object], index: Mapping[str, int], name: str) -> Cell:
    col = index.get(name)
    # Rows from the values API stop at their last non-empty cell.
    if col is None or col >= len(row):
        return None
    return _clean(row[col])


def _fields(
    row: Sequence[object], index: Mapping[str, int], columns: Mapping[str, str]
) -> dict[str, Cell]:
    return {field: _cell(row, index, header) for header, field in columns.items()}


def _require_header(rows: Sequence[Sequence[object]], sheet: str) -> Sequence[object]:
    if not rows:
        raise MalformedSource(f"Reading {sheet} sheet", f'The "{sheet}" sheet has no header row.')
    return rows[0]


def map_story(rows: Sequence[Sequence[object]]) -> StoryRecord:
    """Build the story record from row 1 of the Story sheet.

    Row 0 is the header row; rows after row 1 are ignored. A sheet with only
    a header row yields an all-absent record.
    """
    index = header_index(_require_header(rows, STORY_SHEET))
    data: Sequence[object] = rows[1] if len(rows) > 1 else []
    return StoryRecord(**_fields(data, index, STORY_COLUMNS))


def map_steps(rows: Sequence[Sequence[object]]) -> list[StepRecord]:
    """Build one step record per data row of the Steps sheet, in sheet order."""
    index = header_index(_require_header(rows, STEPS_SHEET))
    return [StepRecord(**_fields(row, index, STEP_COLUMNS)) for row in rows[1:]]


def map_tables(raw: RawTables) -> tuple[StoryRecord, list[StepRecord]]:
    """Map both sheets of one ingestion run."""
    return map_story(raw.story), map_steps(raw.steps)


__all__ = ["header_index", "map_story", "map_steps", "map_tables"]
