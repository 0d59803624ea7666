"""
Table sources: where the Story and Steps sheets come from.

Two locations are consulted, in order:

1. **Workbook** (primary): a local ``.xlsx`` file, read with ``openpyxl``.
2. **Sheets API** (secondary): one ``values:batchGet`` request against a
   published spreadsheet, naming both sheets in a single call.

Fallback rule
-------------
Each location answers with a :class:`~scrollystory.core.lookup.Lookup`:

- ``Found``     -> use these tables,
- ``NotFound``  -> the location does not exist; try the next one,
- ``Malformed`` -> the location exists but is broken; stop here.

A broken workbook is therefore never papered over by the remote sheet. Each
location gets exactly one attempt per run; there is no retry policy.

Missing-sheet detection on the remote side
------------------------------------------
The values API reports an unknown range name only through its error message
(``"Unable to parse range: Steps"``). :func:`check_error_payload` looks for
that wording for every required sheet before falling back to a generic error.
This is best-effort string matching: upstream wording can change, so a
generic error does not prove that both sheets exist.
"""

from __future__ import annotations

import json
import re
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, time
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from scrollystory.core.contracts.tables import SHEET_NAMES, Cell, RawTables, Table
from scrollystory.core.errors import (
    MalformedSource,
    MissingSheet,
    ScrollyError,
    SourceUnavailable,
)
from scrollystory.core.lookup import Lookup, found, malformed, not_found
from scrollystory.core.settings import DEFAULT_SHEETS_ENDPOINT, Settings, get_logger

logger = get_logger(__name__)

INVALID_DOCUMENT_ID = "InvalidGoogleSheetURL"
_DOCUMENT_ID = re.compile(r"/d/([a-zA-Z0-9-_]+)")
_MISSING_RANGE_MARKER = "Unable to parse range"

# (status code, decoded JSON body)
FetchResponse = tuple[int, Mapping[str, Any]]
Fetch = Callable[[str], FetchResponse]


# ===========================================================================
# Workbook (primary)
# ===========================================================================


def _is_blank(row: Sequence[object]) -> bool:
    return all(c is None or (isinstance(c, str) and not c.strip()) for c in row)


def _cell_value(value: object) -> Cell:
    """Keep plain values; render booleans, dates and times as text."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, int | float):
        return value
    if isinstance(value, date | time):
        return value.isoformat()
    return str(value)


def _sheet_rows(worksheet: Any) -> Table:
    """Return the sheet's rows as lists, skipping fully blank rows."""
    return [
        [_cell_value(c) for c in row]
        for row in worksheet.iter_rows(values_only=True)
        if not _is_blank(row)
    ]


@dataclass(slots=True)
class WorkbookSource:
    """Local ``.xlsx`` workbook containing the Story and Steps sheets."""

    path: Path
    sheet_names: tuple[str, ...] = SHEET_NAMES

    @property
    def context(self) -> str:
        return f'Loading "{self.path}" file from disk'

    def lookup(self) -> Lookup[RawTables]:
        """Read the workbook.

        Returns ``NotFound`` when the file does not exist, ``Malformed`` when
        it exists but is not a readable workbook or lacks a required sheet.

        In read-only mode openpyxl parses each sheet lazily, so a corrupt
        sheet only fails while its rows are read. Any failure from opening
        the file to the last row is therefore reported as ``Malformed``.
        """
        if not self.path.is_file():
            return not_found(f"{self.path} does not exist")

        try:
            return self._read()
        except Exception as exc:  # noqa: BLE001
            detail = f"Error: {type(exc).__name__}: {exc}"
            return malformed(MalformedSource(self.context, detail))

    def _read(self) -> Lookup[RawTables]:
        workbook = load_workbook(self.path, read_only=True, data_only=True)
        try:
            for name in self.sheet_names:
                if name not in workbook.sheetnames:
                    detail = f'Spreadsheet must contain a "{name}" sheet.'
                    return malformed(MissingSheet(self.context, name, detail))
            story, steps = (_sheet_rows(workbook[name]) for name in self.sheet_names[:2])
        finally:
            workbook.close()

        return found(RawTables(story=story, steps=steps, origin="workbook"))


# ===========================================================================
# Sheets values API (secondary)
# ===========================================================================


def extract_document_id(sheet_url: str) -> str:
    """Return the document id embedded in a spreadsheet URL.

    >>> extract_document_id("https://docs.google.com/spreadsheets/d/abc-123_X/edit")
    'abc-123_X'

    An URL without a ``/d/<id>`` segment yields ``INVALID_DOCUMENT_ID``; the
    request is still issued and the remote error is reported as usual.
    """
    match = _DOCUMENT_ID.search(sheet_url or "")
    return match.group(1) if match else INVALID_DOCUMENT_ID


def http_get_json(url: str, timeout: float = 30.0) -> FetchResponse:
    """Perform a single HTTP GET and decode the JSON body.

    HTTP error statuses are *not* raised: their JSON body carries the
    ``{"error": {...}}`` payload the caller needs to classify.

    Raises
    ------
    SourceUnavailable
        If the host cannot be reached or the body is not JSON.
    """
    request = urllib.request.Request(url=url, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            status, raw = resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        status, raw = exc.code, exc.read()
    except urllib.error.URLError as exc:
        raise SourceUnavailable("Fetching data from Google Sheet", f"Network error: {exc}") from exc

    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SourceUnavailable(
            "Fetching data from Google Sheet", f"HTTP {status}: response is not JSON"
        ) from exc
    if not isinstance(decoded, dict):
        decoded = {"value": decoded}
    return status, decoded


def check_error_payload(
    ok: bool,
    payload: Mapping[str, Any],
    context: str,
    sheet_names: Sequence[str] = SHEET_NAMES,
) -> None:
    """Raise the most specific error described by a values API response.

    The missing-sheet check runs first, for every required sheet, and wins
    even over a generic error code. Only when no sheet is named and the
    response is not ``ok`` is a generic :class:`SourceUnavailable` raised.
    """
    error = payload.get("error")
    if not isinstance(error, Mapping):
        error = None

    if error is not None:
        message = str(error.get("message") or "")
        for name in sheet_names:
            if name in message and _MISSING_RANGE_MARKER in message:
                detail = f'Sheet name "{name}" not found in the Google Sheet.'
                raise MissingSheet(context, name, detail)

    if ok:
        return

    if error is None:
        raise SourceUnavailable(context, "Request failed without an error payload")
    if error.get("code") == 404:
        raise SourceUnavailable(context, "Could not find the data file")
    raise SourceUnavailable(context, str(error.get("message") or "Unknown error"))


def _range_rows(values: list[Any], context: str, sheet: str) -> Table:
    """Check one range's ``values`` and return it as a table.

    Every row must be a JSON array and every cell a scalar; anything else is
    a malformed response rather than data to be guessed at.
    """
    table: Table = []
    for number, row in enumerate(values, start=1):
        if not isinstance(row, list):
            raise MalformedSource(
                context, f'Row {number} of "{sheet}" is {type(row).__name__}, not a list of cells'
            )
        for cell in row:
            if isinstance(cell, (list, Mapping)):
                raise MalformedSource(
                    context, f'Row {number} of "{sheet}" holds a non-scalar cell: {cell!r}'
                )
        table.append([_cell_value(cell) for cell in row])
    return table


def _value_ranges(payload: Mapping[str, Any], context: str, names: Sequence[str]) -> list[Table]:
    ranges = payload.get("valueRanges")
    if not isinstance(ranges, list) or len(ranges) < len(names):
        raise MalformedSource(context, f"Expected {len(names)} value ranges in the response")
    tables: list[Table] = []
    for name, entry in zip(names, ranges, strict=False):
        values = entry.get("values", []) if isinstance(entry, Mapping) else None
        if not isinstance(values, list):
            raise MalformedSource(context, f'Value range "{name}" must be a list of rows')
        tables.append(_range_rows(values, context, name))
    return tables


@dataclass(slots=True)
class SheetsApiSource:
    """Published spreadsheet read through the values ``batchGet`` endpoint.

    Parameters
    ----------
    sheet_url:
        Document URL containing the ``/d/<documentId>`` segment.
    api_key:
        Access key sent as the ``key`` query parameter.
    endpoint:
        Base of the spreadsheets values API.
    fetch:
        ``url -> (status, json)`` transport; the seam tests replace.
    """

    sheet_url: str
    api_key: str = ""
    endpoint: str = DEFAULT_SHEETS_ENDPOINT
    fetch: Fetch = field(default=http_get_json)
    sheet_names: tuple[str, ...] = SHEET_NAMES

    @property
    def context(self) -> str:
        return f"Fetching data from Google Sheet {self.sheet_url}"

    def build_url(self) -> str:
        """Return the single batched request URL naming every required sheet."""
        document_id = extract_document_id(self.sheet_url)
        ranges = "&".join(f"ranges={name}" for name in self.sheet_names)
        base = self.endpoint.rstrip("/")
        return f"{base}/{document_id}/values:batchGet?{ranges}&key={self.api_key}"

    def lookup(self) -> Lookup[RawTables]:
        """Fetch both sheets in one request.

        A reachable remote never answers ``NotFound``: it is the last
        location, so its failures are raised as errors.
        """
        try:
            status, payload = self.fetch(self.build_url())
        except ScrollyError as exc:
            raise exc.with_context(self.context) from exc
        except Exception as exc:  # noqa: BLE001
            raise SourceUnavailable(self.context, str(exc)) from exc

        check_error_payload(200 <= status < 300, payload, self.context, self.sheet_names)
        story, steps = _value_ranges(payload, self.context, self.sheet_names[:2])
        return found(RawTables(story=story, steps=steps, origin="sheets-api"))


# ===========================================================================
# Fallback chain
# ===========================================================================


class TableSource:
    """Primary location with an optional fallback location."""

    def __init__(self, primary: WorkbookSource, secondary: SheetsApiSource | None = None) -> None:
        self.primary = primary
        self.secondary = secondary

    @classmethod
    def from_settings(cls, cfg: Settings, fetch: Fetch | None = None) -> TableSource:
        """Build the default workbook -> Sheets API chain from settings."""
        secondary: SheetsApiSource | None = None
        if cfg.has_secondary_source:
            timeout = cfg.fetch_timeout
            secondary = SheetsApiSource(
                sheet_url=cfg.sheet_url or "",
                api_key=cfg.sheets_api_key or "",
                endpoint=cfg.sheets_endpoint,
                fetch=fetch or (lambda url: http_get_json(url, timeout=timeout)),
            )
        return cls(WorkbookSource(Path(cfg.workbook_path)), secondary)

    def resolve(self) -> RawTables:
        """Return the tables from the first location that has them.

        Raises
        ------
        MalformedSource, MissingSheet
            The primary location exists but is unusable (no fallback).
        SourceUnavailable
            The primary is absent and the secondary is unset or failed.
        """
        tables = self.primary.lookup().or_else(self._fallback).unwrap()
        logger.info("Fetched data from %s", tables.origin)
        return tables

    def _fallback(self, reason: str) -> Lookup[RawTables]:
        """Consult the secondary location once; only reached on ``NotFound``."""
        logger.info("Primary source not found (%s); trying Google Sheet", reason)
        if self.secondary is None:
            raise SourceUnavailable(
                "Resolving story data",
                f"{self.primary.path} does not exist and no Google Sheet URL is configured",
            )
        return self.secondary.lookup()


__all__ = [
    "WorkbookSource",
    "SheetsApiSource",
    "TableSource",
    "extract_document_id",
    "check_error_payload",
    "http_get_json",
    "INVALID_DOCUMENT_ID",
]
