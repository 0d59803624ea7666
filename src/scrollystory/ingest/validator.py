"""
Record validation for the Story and Steps sheets.

The validator only inspects records; it never mutates or coerces them.

Rules
-----
Story
    ``scroll_type`` and ``title`` are required. ``text_horizontal_percentage``
    is optional, but when present it must be a number in ``[0, 100]``. The
    narrower ``(1, 99)`` range that actually changes the layout is applied by
    the width post-pass, where out-of-range values are a no-op.
Steps
    ``content_type`` is required and must be one of ``CONTENT_TYPES``. Each
    content type then requires its own fields (see ``REQUIRED_FIELDS``).

Reporting
---------
Each call collects every violation it finds and raises one
:class:`ValidationError` listing them all, so a sheet author sees every
problem of a sheet in one run. The pipeline validates the story first and
only moves on to the steps when the story is valid.
"""

from __future__ import annotations

from collections.abc import Sequence

from scrollystory.core.contracts.step import CONTENT_TYPES, REQUIRED_FIELDS, StepRecord
from scrollystory.core.contracts.story import StoryRecord, as_number
from scrollystory.core.errors import ValidationError, Violation

STORY_CONTEXT = "Reading Story data from file (1st sheet)"
STEPS_CONTEXT = "Reading Step data from file (2nd sheet)"

_STORY_REQUIRED: tuple[tuple[str, str], ...] = (
    ("scroll_type", "ScrollType"),
    ("title", "Title"),
)

# Field name -> sheet header, for messages a sheet author can act on.
_STEP_HEADERS: dict[str, str] = {
    "content_type": "ContentType",
    "file_path": "FilePath",
    "latitude": "Latitude",
    "longitude": "Longitude",
    "zoom_level": "ZoomLevel",
    "text": "Text",
}


def story_violations(record: StoryRecord) -> list[Violation]:
    """Return every rule the story record breaks (empty when valid)."""
    found: list[Violation] = []
    for field, header in _STORY_REQUIRED:
        if getattr(record, field) is None:
            found.append(Violation("Story", field, f'Story is missing required field "{header}"'))

    raw = record.text_horizontal_percentage
    if raw is not None:
        value = as_number(raw)
        if value is None:
            found.append(
                Violation(
                    "Story",
                    "text_horizontal_percentage",
                    f'"TextHorizontalPercentage" must be a number, got {raw!r}',
                )
            )
        elif not 0 <= value <= 100:
            found.append(
                Violation(
                    "Story",
                    "text_horizontal_percentage",
                    f'"TextHorizontalPercentage" must be between 0 and 100, got {value:g}',
                )
            )
    return found


def step_violations(record: StepRecord, step_number: int) -> list[Violation]:
    """Return every rule a single step breaks; ``step_number`` is 1-based."""
    where = f"Step {step_number}"
    kind = record.kind
    if kind is None:
        return [Violation(where, "content_type", f'{where}: missing required field "ContentType"')]
    if kind not in CONTENT_TYPES:
        allowed = ", ".join(CONTENT_TYPES)
        return [
            Violation(
                where,
                "content_type",
                f'{where}: unknown content type "{record.content_type}" '
                f"(expected one of {allowed})",
            )
        ]
    return [
        Violation(where, field, f'{where}: content type "{kind}" requires "{_STEP_HEADERS[field]}"')
        for field in REQUIRED_FIELDS[kind]
        if getattr(record, field) is None
    ]


def validate_story(record: StoryRecord, context: str = STORY_CONTEXT) -> None:
    """Raise :class:`ValidationError` if the story record is invalid."""
    violations = story_violations(record)
    if violations:
        raise ValidationError(context, violations=violations)


def validate_steps(records: Sequence[StepRecord], context: str = STEPS_CONTEXT) -> None:
    """Raise :class:`ValidationError` listing every invalid step."""
    violations: list[Violation] = []
    for number, record in enumerate(records, start=1):
        violations.extend(step_violations(record, number))
    if violations:
        raise ValidationError(context, violations=violations)


__all__ = [
    "validate_story",
    "validate_steps",
    "story_violations",
    "step_violations",
    "STORY_CONTEXT",
    "STEPS_CONTEXT",
]
