"""
API Routes for the assembled story.

Endpoints
---------
- `GET /story`       : Run the pipeline and return story + blocks.
- `GET /story/steps` : The flat list of step attributes, as a renderer would
  attach them to step nodes (absent attributes omitted), with the sticky
  container each step belongs to.

Every request is one ingestion run: nothing is cached between requests, so
an edited sheet is picked up on the next call.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from scrollystory.core.contracts.block import ScrollyBlock
from scrollystory.core.settings import Settings
from scrollystory.pipelines.scrolly_story import PipelineResult, run_pipeline

router = APIRouter(tags=["Story"])


def _settings(request: Request) -> Settings:
    cfg: Settings = request.app.state.settings
    return cfg


@router.get("/story", response_model=PipelineResult, summary="Assemble the story")
def get_story(request: Request) -> PipelineResult:
    """
    Resolve the sheets, validate them, and return the page block tree.

    Pipeline errors are turned into JSON by the app-level handler.
    """
    return run_pipeline(settings=_settings(request))


@router.get("/story/steps", summary="Renderer attributes per step")
def get_step_attributes(request: Request) -> list[dict[str, Any]]:
    """Return ``{step, stickyId, container, attributes}`` per scrolly-block step.

    ``container`` is the DOM id of the sticky map container the step drives.
    """
    result = run_pipeline(settings=_settings(request))
    return [
        {
            "step": step.step_number,
            "stickyId": block.sticky_id,
            "container": block.sticky_container_id,
            "attributes": step.record.data_attributes(),
        }
        for block in result.blocks
        if isinstance(block, ScrollyBlock)
        for step in block.steps
    ]


__all__ = ["router"]
