"""Pipeline entry points for scrollystory.

Currently exposed:

- :func:`run_pipeline`: workbook/Google Sheet -> validated records -> blocks,
  implemented in ``scrolly_story.py``.
"""

from __future__ import annotations

from .scrolly_story import PipelineResult, build_story, run_pipeline

__all__ = ["run_pipeline", "build_story", "PipelineResult"]
