"""
Content assembler: ordered step records -> ordered page blocks.

Grouping rule
-------------
Text rows become standalone :class:`TextBlock` sections. Every maximal run of
consecutive non-text rows becomes one :class:`ScrollyBlock`, whose sticky
area is identified by the step number of the run's first row.

The assembler is a left fold over the records with an explicit, immutable
state value. Two states exist:

- **InText**    : no run is open (``run`` is empty); the initial state.
- **InScrolly** : a run of non-text rows is accumulating.

Transitions
-----------
text row      -> flush the open run (if any), append a TextBlock, go InText.
non-text row  -> append the row to the run, go InScrolly.
end of input  -> flush the open run (if any).

The step counter starts at 1 and advances once per row of any type, so the
step numbers read across the output are exactly ``1..N``. A run is only
flushed when it has rows, so no empty ScrollyBlock is ever emitted, and two
ScrollyBlocks are never adjacent.

Nothing outlives one :func:`assemble` call.

Width post-pass
---------------
:func:`apply_text_width` splits the horizontal space of every ScrollyBlock
between the steps column and the sticky area. Only percentages strictly
between 1 and 99 are applied; anything else leaves the page default in place.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import reduce

from scrollystory.core.contracts.block import Block, ScrollyBlock, TextBlock
from scrollystory.core.contracts.step import NumberedStep, StepRecord

MIN_TEXT_WIDTH = 1.0
MAX_TEXT_WIDTH = 99.0


@dataclass(frozen=True, slots=True)
class _AssemblyState:
    next_step: int = 1
    run: tuple[NumberedStep, ...] = ()
    blocks: tuple[Block, ...] = ()

    @property
    def in_scrolly(self) -> bool:
        return bool(self.run)


def _flush(state: _AssemblyState) -> _AssemblyState:
    """Close the open run into a ScrollyBlock; no-op when InText."""
    if not state.in_scrolly:
        return state
    block = ScrollyBlock(sticky_id=state.run[0].step_number, steps=list(state.run))
    return _AssemblyState(next_step=state.next_step, run=(), blocks=(*state.blocks, block))


def _step(state: _AssemblyState, record: StepRecord) -> _AssemblyState:
    number = state.next_step
    if record.is_text:
        closed = _flush(state)
        text_block = TextBlock(step_number=number, text=record.text)
        return _AssemblyState(next_step=number + 1, run=(), blocks=(*closed.blocks, text_block))

    numbered = NumberedStep(step_number=number, record=record)
    return _AssemblyState(next_step=number + 1, run=(*state.run, numbered), blocks=state.blocks)


def assemble(records: Sequence[StepRecord]) -> list[Block]:
    """Group validated step records into text and scrolly blocks.

    Examples
    --------
    ``[text, image, image, text]`` yields
    ``[TextBlock(1), ScrollyBlock(sticky_id=2, steps=[2, 3]), TextBlock(4)]``;
    ``[image, image]`` yields ``[ScrollyBlock(sticky_id=1, steps=[1, 2])]``;
    ``[]`` yields ``[]``.
    """
    final = _flush(reduce(_step, records, _AssemblyState()))
    return list(final.blocks)


def apply_text_width(blocks: Sequence[Block], percentage: float | None) -> list[Block]:
    """Return ``blocks`` with the text/media split applied to every ScrollyBlock.

    ``percentage`` is the share of the steps column. Values outside the open
    interval ``(1, 99)``, and ``None``, return the blocks unchanged.
    """
    if percentage is None or not MIN_TEXT_WIDTH < percentage < MAX_TEXT_WIDTH:
        return list(blocks)
    text_width = float(percentage)
    return [
        block.model_copy(
            update={"text_width_percent": text_width, "media_width_percent": 100.0 - text_width}
        )
        if isinstance(block, ScrollyBlock)
        else block
        for block in blocks
    ]


def sticky_ids(blocks: Sequence[Block]) -> list[int]:
    """Sticky area ids of the ScrollyBlocks in ``blocks``, in page order."""
    return [block.sticky_id for block in blocks if isinstance(block, ScrollyBlock)]


__all__ = ["assemble", "apply_text_width", "sticky_ids", "MIN_TEXT_WIDTH", "MAX_TEXT_WIDTH"]
