"""
Starter workbook for new stories.

:func:`write_workbook` writes a ``.xlsx`` file with the two sheets the
pipeline reads. Called with no tables it writes the template story below,
which exercises every content type, so a fresh checkout can run
``scrollystory template`` and then ``scrollystory show``.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook

from scrollystory.core.contracts.tables import STEPS_SHEET, STORY_SHEET, Cell

TEMPLATE_STORY: list[list[Cell]] = [
    [
        "ScrollType",
        "Title",
        "Subtitle",
        "EndText",
        "TextHorizontalPercentage",
        "Authors",
        "BackgroundColor",
        "ScrollBoxBackgroundColor",
        "ScrollBoxTextColor",
        "Footer",
    ],
    [
        "left-side",
        "A Scrolly Story",
        "Told one step at a time",
        "Thanks for reading.",
        40,
        "Story Team",
        "#f6f4ef",
        "#ffffff",
        "#222222",
        "Data: city open data portal",
    ],
]

TEMPLATE_STEPS: list[list[Cell]] = [
    [
        "ContentType",
        "FilePath",
        "AltText",
        "Latitude",
        "Longitude",
        "ZoomLevel",
        "ImageOrientation",
        "Text",
    ],
    ["text", None, None, None, None, None, None, "<h2>Introduction</h2><p>Scroll down.</p>"],
    [
        "image",
        "media/harbor.jpg",
        "The harbor at dawn",
        None,
        None,
        None,
        "landscape",
        "The harbor wakes up early.",
    ],
    ["map", None, None, 47.6062, -122.3321, 11, None, "The city sits between two waters."],
    ["video", "media/ferry.mp4", "A ferry crossing", None, None, None, None, "Ferries run."],
    ["text", None, None, None, None, None, None, "<p>That is the whole tour.</p>"],
]


def write_workbook(
    path: Path,
    story: Sequence[Sequence[Cell]] = TEMPLATE_STORY,
    steps: Sequence[Sequence[Cell]] = TEMPLATE_STEPS,
    *,
    sheet_names: tuple[str, str] = (STORY_SHEET, STEPS_SHEET),
) -> Path:
    """Write ``story`` and ``steps`` to a new workbook at ``path``.

    Parent directories are created. Existing files are overwritten.
    """
    workbook = Workbook()
    story_ws = workbook.active
    story_ws.title = sheet_names[0]
    for row in story:
        story_ws.append(list(row))

    steps_ws = workbook.create_sheet(sheet_names[1])
    for row in steps:
        steps_ws.append(list(row))

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    return path


__all__ = ["write_workbook", "TEMPLATE_STORY", "TEMPLATE_STEPS"]
