from __future__ import annotations

from .assembler import apply_text_width, assemble, sticky_ids

__all__ = ["assemble", "apply_text_width", "sticky_ids"]
