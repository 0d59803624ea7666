"""Pydantic contracts shared by the ingestion, assembly and output layers."""

from __future__ import annotations

from .block import Block, ScrollyBlock, TextBlock, flatten_step_numbers
from .step import CONTENT_TYPES, NumberedStep, StepRecord
from .story import StoryRecord
from .tables import SHEET_NAMES, RawTables

__all__ = [
    "Block",
    "TextBlock",
    "ScrollyBlock",
    "flatten_step_numbers",
    "StepRecord",
    "NumberedStep",
    "CONTENT_TYPES",
    "StoryRecord",
    "RawTables",
    "SHEET_NAMES",
]
