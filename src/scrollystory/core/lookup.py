"""Tri-state lookup container for table sources.

Motivation
----------
A source location can answer in three ways, and only one of them means
"try somewhere else":

- `Found(value)`      : the location produced tables,
- `NotFound(reason)`  : the location does not exist; fall back,
- `Malformed(error)`  : the location exists but is unusable; stop.

Returning one of these instead of raising keeps the fallback decision out of
exception handling. Only `Malformed` (via :meth:`Lookup.unwrap`) and an
exhausted fallback chain turn into raised errors.

Example
-------
>>> from scrollystory.core.lookup import found, not_found
>>> found(3).unwrap()
3
>>> not_found("no file").is_not_found()
True
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, cast

from scrollystory.core.errors import ScrollyError

T = TypeVar("T")


class Lookup(Generic[T]):
    """Sum type: `Found[T]`, `NotFound` or `Malformed`."""

    # ----- Introspection -----------------------------------------------------
    def is_found(self) -> bool:
        """Return ``True`` if this is a :class:`Found` value."""
        return isinstance(self, Found)

    def is_not_found(self) -> bool:
        """Return ``True`` if this is a :class:`NotFound` value."""
        return isinstance(self, NotFound)

    def is_malformed(self) -> bool:
        """Return ``True`` if this is a :class:`Malformed` value."""
        return isinstance(self, Malformed)

    # ----- Unwraps -----------------------------------------------------------
    def unwrap(self) -> T:
        """Return the found value, or raise.

        Raises
        ------
        ScrollyError
            The wrapped error when this is :class:`Malformed`.
        RuntimeError
            When this is :class:`NotFound`; callers are expected to branch on
            :meth:`is_not_found` before unwrapping.
        """
        if isinstance(self, Found):
            return cast(Found[T], self).value
        if isinstance(self, Malformed):
            raise self.error
        raise RuntimeError(f"Attempted to unwrap NotFound: {self!r}")

    # ----- Combinators -------------------------------------------------------
    def or_else(self, fallback: Callable[[str], Lookup[T]]) -> Lookup[T]:
        """If ``NotFound``, call ``fallback(reason)``; otherwise return ``self``.

        `Malformed` is returned unchanged: a broken location never falls back.
        """
        if isinstance(self, NotFound):
            return fallback(self.reason)
        return self


@dataclass(frozen=True)
class Found(Lookup[T]):
    """The location produced a value."""

    value: T


@dataclass(frozen=True)
class NotFound(Lookup[T]):
    """The location does not exist (missing file, unset URL)."""

    reason: str


@dataclass(frozen=True)
class Malformed(Lookup[T]):
    """The location exists but its content cannot be used."""

    error: ScrollyError


# ----- Convenience constructors ----------------------------------------------
def found(value: T) -> Lookup[T]:
    """Construct :class:`Found` with better type inference at call sites."""
    return Found(value)


def not_found(reason: str) -> Lookup[T]:
    """Construct :class:`NotFound`."""
    return NotFound(reason)


def malformed(error: ScrollyError) -> Lookup[T]:
    """Construct :class:`Malformed`."""
    return Malformed(error)


__all__ = ["Lookup", "Found", "NotFound", "Malformed", "found", "not_found", "malformed"]
