"""Story-level record built from the single data row of the Story sheet."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from scrollystory.core.contracts.tables import Cell

# Lowercase, separator-free header name -> StoryRecord field.
STORY_COLUMNS: dict[str, str] = {
    "scrolltype": "scroll_type",
    "title": "title",
    "subtitle": "subtitle",
    "endtext": "end_text",
    "texthorizontalpercentage": "text_horizontal_percentage",
    "authors": "authors",
    "backgroundcolor": "background_color",
    "scrollboxbackgroundcolor": "scroll_box_background_color",
    "scrollboxtextcolor": "scroll_box_text_color",
    "footer": "footer",
}


def as_number(value: Cell) -> float | None:
    """Return ``value`` as a float, or ``None`` if it is absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(value.strip().rstrip("%"))
    except ValueError:
        return None


class StoryRecord(BaseModel):
    """Story metadata; every field may be absent until validated.

    ``scroll_type`` and ``title`` are required by the validator, not here:
    the mapper must be able to represent a sheet that lacks them.
    """

    model_config = ConfigDict(frozen=True)

    scroll_type: Cell = Field(None, description="Layout variant, e.g. 'left-side'.")
    title: Cell = None
    subtitle: Cell = None
    end_text: Cell = None
    text_horizontal_percentage: Cell = Field(
        None, description="Share of the viewport given to narrative text."
    )
    authors: Cell = None
    background_color: Cell = None
    scroll_box_background_color: Cell = None
    scroll_box_text_color: Cell = None
    footer: Cell = None

    @property
    def text_width_percent(self) -> float | None:
        """Numeric form of ``text_horizontal_percentage``."""
        return as_number(self.text_horizontal_percentage)


__all__ = ["StoryRecord", "STORY_COLUMNS", "as_number"]
