"""Core package initializer for scrollystory.

Holds the shared building blocks used by every stage:
    settings (config + logging), errors, the tri-state lookup, and contracts.
"""

from __future__ import annotations

__all__ = ["__doc__"]
