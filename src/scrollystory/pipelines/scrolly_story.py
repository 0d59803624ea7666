"""
Scrolly story pipeline: from spreadsheet tables to a page block tree.

Flow Overview
-------------
1. **Resolve**  : :class:`TableSource` reads the workbook, or the Google
   Sheet when the workbook does not exist.
2. **Map**      : raw rows become :class:`StoryRecord` / :class:`StepRecord`.
3. **Validate** : the story, then the full step list.
4. **Assemble** : steps are grouped into text and scrolly blocks, and the
   story's text width is applied to every scrolly block.

Each stage runs to completion before the next starts. Any error raised below
this module is re-raised with the context of the stage that failed and keeps
its class, so callers can match on :class:`MissingSheet`,
:class:`ValidationError` and friends. There is no partial result: either a
fully valid :class:`PipelineResult` comes back, or an error is raised.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from scrollystory.assembly.assembler import apply_text_width, assemble, sticky_ids
from scrollystory.core.contracts.block import Block, flatten_step_numbers
from scrollystory.core.contracts.story import StoryRecord
from scrollystory.core.contracts.tables import Origin, RawTables
from scrollystory.core.errors import ScrollyError, SourceUnavailable
from scrollystory.core.settings import Settings, get_logger, load_settings
from scrollystory.ingest.mapper import map_steps, map_story
from scrollystory.ingest.sources import TableSource
from scrollystory.ingest.validator import (
    STEPS_CONTEXT,
    STORY_CONTEXT,
    validate_steps,
    validate_story,
)

logger = get_logger(__name__)

T = TypeVar("T")

RESOLVE_CONTEXT = "Resolving story data"


class PipelineResult(BaseModel):
    """Everything the renderer needs for one page.

    Attributes
    ----------
    story:
        The validated story record.
    blocks:
        Text and scrolly blocks in page order, widths already applied.
    origin:
        Which location supplied the tables.
    """

    model_config = ConfigDict(frozen=True)

    story: StoryRecord
    blocks: list[Block] = Field(default_factory=list)
    origin: Origin

    @property
    def step_count(self) -> int:
        return len(flatten_step_numbers(self.blocks))

    @property
    def sticky_ids(self) -> list[int]:
        return sticky_ids(self.blocks)


def _stage(context: str, fn: Callable[..., T], *args: Any) -> T:
    """Run one stage, re-labelling any failure with ``context``.

    :class:`ScrollyError` subclasses keep their class; other exceptions are
    bugs and propagate untouched.
    """
    try:
        return fn(*args)
    except ScrollyError as exc:
        if exc.context == context:
            raise
        raise exc.with_context(context) from exc


def resolve_tables(source: TableSource) -> RawTables:
    """Stage 1: fetch raw tables, keeping the source's own context."""
    try:
        return source.resolve()
    except ScrollyError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise SourceUnavailable(RESOLVE_CONTEXT, f"{type(exc).__name__}: {exc}") from exc


def build_story(raw: RawTables) -> PipelineResult:
    """Run stages 2-4 on already fetched tables."""
    story = _stage(STORY_CONTEXT, map_story, raw.story)
    _stage(STORY_CONTEXT, validate_story, story)

    steps = _stage(STEPS_CONTEXT, map_steps, raw.steps)
    _stage(STEPS_CONTEXT, validate_steps, steps)

    blocks = apply_text_width(assemble(steps), story.text_width_percent)
    result = PipelineResult(story=story, blocks=blocks, origin=raw.origin)
    logger.info(
        "Assembled %d steps into %d blocks (%d scrolly) from %s",
        len(steps),
        len(blocks),
        len(result.sticky_ids),
        raw.origin,
    )
    return result


def run_pipeline(
    source: TableSource | None = None,
    *,
    settings: Settings | None = None,
) -> PipelineResult:
    """Resolve, map, validate and assemble one scrolly story.

    Parameters
    ----------
    source:
        Table source to read from. Defaults to the workbook / Google Sheet
        chain described by ``settings``.
    settings:
        Configuration used when ``source`` is omitted. Defaults to
        :func:`load_settings`.

    Raises
    ------
    ScrollyError
        Any stage failure, carrying that stage's context.
    """
    if source is None:
        source = TableSource.from_settings(settings or load_settings())
    raw = resolve_tables(source)
    return build_story(raw)


__all__ = ["PipelineResult", "run_pipeline", "build_story", "resolve_tables"]
