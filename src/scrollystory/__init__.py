"""scrollystory: turn Story/Steps spreadsheets into a scrolly page block tree.

The package reads a single-row *Story* table and a multi-row *Steps* table,
validates them, and groups the steps into alternating text and scrolly
blocks that an external renderer turns into a page.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
