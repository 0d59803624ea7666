"""Raw tabular shapes exchanged between the sources and the mapper.

A table is a list of rows; row 0 is the header row and every following row is
a data row. Cells are whatever the source produced: strings from the values
API, strings/numbers from a workbook, ``None`` for empty cells.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Cell = str | int | float | None
Row = list[Cell]
Table = list[Row]

Origin = Literal["workbook", "sheets-api"]

# Required sheet names, in the order the values API returns them.
STORY_SHEET = "Story"
STEPS_SHEET = "Steps"
SHEET_NAMES: tuple[str, ...] = (STORY_SHEET, STEPS_SHEET)


class RawTables(BaseModel):
    """The two tables of one ingestion run, before any mapping."""

    model_config = ConfigDict(frozen=True)

    story: Table = Field(default_factory=list, description="Story sheet rows (header first).")
    steps: Table = Field(default_factory=list, description="Steps sheet rows (header first).")
    origin: Origin = Field(..., description="Which location supplied the tables.")


__all__ = [
    "Cell",
    "Row",
    "Table",
    "Origin",
    "RawTables",
    "SHEET_NAMES",
    "STORY_SHEET",
    "STEPS_SHEET",
]
