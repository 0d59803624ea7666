"""
Block Contract

A page is an ordered list of blocks, each either:

- a ``TextBlock``   : one plain-text section built from a single text row, or
- a ``ScrollyBlock``: a run of consecutive non-text rows sharing one sticky
  media area.

The ``kind`` field is the discriminator, so a ``list[Block]`` round-trips
through JSON (API responses, CLI export) without losing the variant.

Invariants enforced here
------------------------
- ``ScrollyBlock.steps`` is never empty.
- ``ScrollyBlock.sticky_id`` equals the step number of its first step.
- Width fields are either both unset or both set.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scrollystory.core.contracts.step import NumberedStep
from scrollystory.core.contracts.tables import Cell


class TextBlock(BaseModel):
    """A plain narrative section."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    step_number: int = Field(..., ge=1)
    text: Cell = None


class ScrollyBlock(BaseModel):
    """A run of media steps rendered next to one sticky area."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scrolly"] = "scrolly"
    sticky_id: int = Field(..., ge=1, description="Step number of the first step.")
    steps: list[NumberedStep] = Field(..., min_length=1)
    text_width_percent: float | None = Field(
        default=None, description="Width of the steps column; None keeps the page default."
    )
    media_width_percent: float | None = Field(
        default=None, description="Width of the sticky area; None keeps the page default."
    )

    @model_validator(mode="after")
    def _check_invariants(self) -> ScrollyBlock:
        if self.sticky_id != self.steps[0].step_number:
            raise ValueError(
                f"sticky_id {self.sticky_id} must equal first step number "
                f"{self.steps[0].step_number}"
            )
        widths = (self.text_width_percent, self.media_width_percent)
        if (widths[0] is None) != (widths[1] is None):
            raise ValueError("text and media widths must be set together")
        return self

    @property
    def step_numbers(self) -> list[int]:
        return [s.step_number for s in self.steps]

    @property
    def sticky_container_id(self) -> str:
        """DOM id of the map container inside this block's sticky area."""
        return f"sticky-map-container-{self.sticky_id}"


Block = Annotated[TextBlock | ScrollyBlock, Field(discriminator="kind")]


def flatten_step_numbers(blocks: Iterable[TextBlock | ScrollyBlock]) -> list[int]:
    """Return the step numbers across ``blocks`` in page order."""
    out: list[int] = []
    for block in blocks:
        if isinstance(block, TextBlock):
            out.append(block.step_number)
        else:
            out.extend(block.step_numbers)
    return out


__all__ = ["Block", "TextBlock", "ScrollyBlock", "flatten_step_numbers"]
