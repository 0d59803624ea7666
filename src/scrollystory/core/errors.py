"""Error taxonomy for the ingestion pipeline.

Every failure the pipeline can raise is a :class:`ScrollyError` carrying two
human-readable strings:

- ``context``: the stage that failed (e.g. ``"Reading Story data from file
  (1st sheet)"``),
- ``detail``  : what went wrong at that stage.

Subclasses
----------
SourceUnavailable
    Neither the primary nor the secondary location produced data.
MissingSheet
    A required sheet could not be resolved at an otherwise reachable source.
MalformedSource
    A source was reachable but its content is not readable as tables.
ValidationError
    A record is missing a required field or holds a value outside its domain.

Stage wrapping keeps the class: ``err.with_context("...")`` returns a new
instance of the same type, so callers can still match on it.
"""

from __future__ import annotations

from dataclasses import dataclass


class ScrollyError(Exception):
    """Base class for every pipeline failure."""

    def __init__(self, context: str, detail: str) -> None:
        super().__init__(f"{context}: {detail}")
        self.context = context
        self.detail = detail

    def with_context(self, context: str) -> ScrollyError:
        """Return a copy of this error re-labelled with ``context``."""
        # Exception.__reduce__ replays ``args`` into __init__, which does not
        # match our signatures, so the clone is built by hand.
        clone = type(self).__new__(type(self))
        for key, value in self.__dict__.items():
            # Lists (e.g. ValidationError.violations) are copied, not shared.
            clone.__dict__[key] = list(value) if isinstance(value, list) else value
        clone.context = context
        clone.args = (f"{context}: {self.detail}",)
        clone.__cause__ = self.__cause__
        return clone

    def to_dict(self) -> dict[str, object]:
        """JSON-safe payload used by the API and CLI exporters."""
        return {"error": type(self).__name__, "context": self.context, "detail": self.detail}


class SourceUnavailable(ScrollyError):
    """No location yielded data."""


class MalformedSource(ScrollyError):
    """The source was found but could not be read as tabular data."""


class MissingSheet(ScrollyError):
    """A required sheet (``sheet_name``) is absent from a reachable source."""

    def __init__(self, context: str, sheet_name: str, detail: str | None = None) -> None:
        super().__init__(context, detail or f'Sheet name "{sheet_name}" not found.')
        self.sheet_name = sheet_name

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["sheet"] = self.sheet_name
        return payload


@dataclass(frozen=True, slots=True)
class Violation:
    """One failed check: where it happened, which field, and a message."""

    location: str
    field: str
    message: str


class ValidationError(ScrollyError):
    """One or more records failed validation.

    ``violations`` holds every failed check found in a single validation
    call; ``detail`` is their messages joined with ``"; "``.
    """

    def __init__(
        self,
        context: str,
        detail: str | None = None,
        violations: list[Violation] | None = None,
    ) -> None:
        self.violations: list[Violation] = list(violations or [])
        if detail is None:
            detail = "; ".join(v.message for v in self.violations)
        super().__init__(context, detail)

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields, in report order."""
        return [v.field for v in self.violations]

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["violations"] = [
            {"location": v.location, "field": v.field, "message": v.message}
            for v in self.violations
        ]
        return payload


__all__ = [
    "ScrollyError",
    "SourceUnavailable",
    "MalformedSource",
    "MissingSheet",
    "Violation",
    "ValidationError",
]
