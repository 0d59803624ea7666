"""Step-level record: one per data row of the Steps sheet.

The row's position in the sheet defines its 1-based step number. That number
is not stored here; the assembler assigns it (see :class:`NumberedStep`).
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from scrollystory.core.contracts.tables import Cell

TEXT: Final = "text"
IMAGE: Final = "image"
VIDEO: Final = "video"
MAP: Final = "map"

CONTENT_TYPES: tuple[str, ...] = (TEXT, IMAGE, VIDEO, MAP)

# Content type -> fields that must be present for it.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    TEXT: ("text",),
    IMAGE: ("file_path",),
    VIDEO: ("file_path",),
    MAP: ("latitude", "longitude", "zoom_level"),
}

# Lowercase, separator-free header name -> StepRecord field.
STEP_COLUMNS: dict[str, str] = {
    "contenttype": "content_type",
    "filepath": "file_path",
    "alttext": "alt_text",
    "latitude": "latitude",
    "longitude": "longitude",
    "zoomlevel": "zoom_level",
    "imageorientation": "image_orientation",
    "text": "text",
}

# Optional renderer attributes, in the order they are attached to a step node.
_DATA_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("file_path", "filePath"),
    ("alt_text", "altText"),
    ("latitude", "latitude"),
    ("longitude", "longitude"),
    ("zoom_level", "zoomLevel"),
    ("image_orientation", "imageOrientation"),
)


def normalize_content_type(value: Cell) -> str | None:
    """Lowercase and trim a content-type cell; ``None`` when absent."""
    if value is None:
        return None
    cleaned = str(value).strip().lower()
    return cleaned or None


class StepRecord(BaseModel):
    """A single narrative step, as read from the sheet."""

    model_config = ConfigDict(frozen=True)

    content_type: Cell = Field(None, description="One of text, image, video, map.")
    file_path: Cell = Field(None, description="Media path for image/video steps.")
    alt_text: Cell = None
    latitude: Cell = None
    longitude: Cell = None
    zoom_level: Cell = None
    image_orientation: Cell = None
    text: Cell = Field(None, description="Narrative text (HTML allowed).")

    @property
    def kind(self) -> str | None:
        """Normalized content type (``"image"`` for a cell ``" Image "``)."""
        return normalize_content_type(self.content_type)

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT

    def data_attributes(self) -> dict[str, str]:
        """Attributes the renderer attaches to this step's node.

        ``contentType`` is always present; every other attribute appears only
        when its value is present. Absent values are left out entirely rather
        than rendered as empty strings.
        """
        attrs: dict[str, str] = {"contentType": self.kind or ""}
        for field_name, attr in _DATA_ATTRIBUTES:
            value = getattr(self, field_name)
            if value is not None:
                attrs[attr] = str(value)
        return attrs


class NumberedStep(BaseModel):
    """A step record tagged with its 1-based position in the Steps sheet."""

    model_config = ConfigDict(frozen=True)

    step_number: int = Field(..., ge=1)
    record: StepRecord


__all__ = [
    "StepRecord",
    "NumberedStep",
    "CONTENT_TYPES",
    "REQUIRED_FIELDS",
    "STEP_COLUMNS",
    "TEXT",
    "IMAGE",
    "VIDEO",
    "MAP",
    "normalize_content_type",
]
