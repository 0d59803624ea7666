"""Tests for the table sources and the workbook -> Google Sheet fallback.

No network I/O happens here. The Sheets API source takes a `fetch` callable,
and most tests pass a stub that records the URLs it was asked for; the
default `http_get_json` transport is exercised by replacing
`urllib.request.urlopen`.
"""

from __future__ import annotations

import io
import urllib.error
import zipfile
from collections.abc import Callable, Mapping
from email.message import Message
from pathlib import Path
from typing import Any

import pytest

from scrollystory.core.errors import MalformedSource, MissingSheet, SourceUnavailable
from scrollystory.core.settings import Settings
from scrollystory.ingest.sources import (
    INVALID_DOCUMENT_ID,
    SheetsApiSource,
    TableSource,
    WorkbookSource,
    check_error_payload,
    extract_document_id,
    http_get_json,
)
from scrollystory.ingest.template import TEMPLATE_STEPS, TEMPLATE_STORY, write_workbook

SHEET_URL = "https://docs.google.com/spreadsheets/d/17sHlHcOilG9UmRju8YDGx4bRMIDpQ5Bpfzc0QI-Np6c"
CONTEXT = "Fetching data from Google Sheet"

OK_PAYLOAD: dict[str, Any] = {
    "valueRanges": [
        {"values": [["ScrollType", "Title"], ["left-side", "Remote Title"]]},
        {"values": [["ContentType", "Text"], ["text", "hello"]]},
    ]
}


class FakeFetch:
    """Records requested URLs and replies with a canned response."""

    def __init__(self, status: int = 200, payload: Mapping[str, Any] | None = None) -> None:
        self.status = status
        self.payload = payload if payload is not None else OK_PAYLOAD
        self.urls: list[str] = []

    def __call__(self, url: str) -> tuple[int, Mapping[str, Any]]:
        self.urls.append(url)
        return self.status, self.payload


def _remote(fetch: FakeFetch) -> SheetsApiSource:
    return SheetsApiSource(sheet_url=SHEET_URL, api_key="k3y", fetch=fetch)


# --------------------------------------------------------------------------- #
# Workbook
# --------------------------------------------------------------------------- #


def test_workbook_found(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "StoryData.xlsx")

    lookup = WorkbookSource(path).lookup()

    assert lookup.is_found()
    tables = lookup.unwrap()
    assert tables.origin == "workbook"
    assert tables.story[0][:2] == TEMPLATE_STORY[0][:2]
    assert len(tables.steps) == len(TEMPLATE_STEPS)


def test_workbook_skips_blank_rows(tmp_path: Path) -> None:
    steps = [["ContentType", "Text"], ["text", "a"], [None, None], ["text", "b"]]
    path = write_workbook(tmp_path / "s.xlsx", TEMPLATE_STORY, steps)

    tables = WorkbookSource(path).lookup().unwrap()

    assert [row[1] for row in tables.steps[1:]] == ["a", "b"]


def test_workbook_missing_file_is_not_found(tmp_path: Path) -> None:
    lookup = WorkbookSource(tmp_path / "nope.xlsx").lookup()
    assert lookup.is_not_found()


def test_workbook_garbage_is_malformed(tmp_path: Path) -> None:
    path = tmp_path / "StoryData.xlsx"
    path.write_bytes(b"this is not a zip archive")

    lookup = WorkbookSource(path).lookup()

    assert lookup.is_malformed()
    with pytest.raises(MalformedSource):
        lookup.unwrap()


@pytest.mark.parametrize(  # type: ignore[misc]
    "present", [("Another", "Steps"), ("Story", "Another")]
)
def test_workbook_missing_sheet(tmp_path: Path, present: tuple[str, str]) -> None:
    path = write_workbook(tmp_path / "s.xlsx", sheet_names=present)
    missing = "Story" if "Story" not in present else "Steps"

    lookup = WorkbookSource(path).lookup()

    assert lookup.is_malformed()
    with pytest.raises(MissingSheet) as exc_info:
        lookup.unwrap()
    assert exc_info.value.sheet_name == missing
    assert exc_info.value.context == f'Loading "{path}" file from disk'
    assert f'Spreadsheet must contain a "{missing}" sheet.' in str(exc_info.value)


def _rewrite_member(path: Path, member: str, edit: Callable[[bytes], bytes]) -> Path:
    """Rewrite one part of an .xlsx archive in place."""
    with zipfile.ZipFile(path) as archive:
        parts = {info.filename: archive.read(info) for info in archive.infolist()}
    parts[member] = edit(parts[member])
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, body in parts.items():
            archive.writestr(name, body)
    return path


def test_workbook_with_bad_package_xml_is_malformed(tmp_path: Path) -> None:
    path = _rewrite_member(
        write_workbook(tmp_path / "StoryData.xlsx"), "[Content_Types].xml", lambda _: b"<Types"
    )
    fetch = FakeFetch()

    with pytest.raises(MalformedSource) as exc_info:
        TableSource(WorkbookSource(path), _remote(fetch)).resolve()

    assert exc_info.value.context == f'Loading "{path}" file from disk'
    assert fetch.urls == []


def test_workbook_with_truncated_sheet_is_malformed(tmp_path: Path) -> None:
    """A sheet is parsed only when its rows are read; that failure still counts."""
    path = _rewrite_member(
        write_workbook(tmp_path / "StoryData.xlsx"),
        "xl/worksheets/sheet2.xml",
        lambda body: body[: len(body) // 2],
    )
    fetch = FakeFetch()

    lookup = WorkbookSource(path).lookup()

    assert lookup.is_malformed()
    with pytest.raises(MalformedSource):
        TableSource(WorkbookSource(path), _remote(fetch)).resolve()
    assert fetch.urls == []


# --------------------------------------------------------------------------- #
# Sheets API
# --------------------------------------------------------------------------- #


def test_extract_document_id() -> None:
    assert extract_document_id(SHEET_URL) == "17sHlHcOilG9UmRju8YDGx4bRMIDpQ5Bpfzc0QI-Np6c"
    assert extract_document_id(SHEET_URL + "/edit#gid=0").startswith("17sHl")
    assert extract_document_id("https://example.com/no-id") == INVALID_DOCUMENT_ID


def test_build_url_names_every_sheet_in_one_request() -> None:
    source = _remote(FakeFetch())
    assert source.build_url() == (
        "https://sheets.googleapis.com/v4/spreadsheets/"
        "17sHlHcOilG9UmRju8YDGx4bRMIDpQ5Bpfzc0QI-Np6c"
        "/values:batchGet?ranges=Story&ranges=Steps&key=k3y"
    )


def test_remote_lookup_returns_tables_in_range_order() -> None:
    fetch = FakeFetch()

    tables = _remote(fetch).lookup().unwrap()

    assert len(fetch.urls) == 1
    assert tables.origin == "sheets-api"
    assert tables.story[1][1] == "Remote Title"
    assert tables.steps[1] == ["text", "hello"]


def test_missing_sheet_wins_over_generic_error_code() -> None:
    payload = {
        "error": {
            "code": 400,
            "message": "Unable to parse range: Steps",
            "status": "INVALID_ARGUMENT",
        }
    }
    with pytest.raises(MissingSheet) as exc_info:
        _remote(FakeFetch(400, payload)).lookup()

    err = exc_info.value
    assert err.sheet_name == "Steps"
    assert 'Sheet name "Steps" not found' in err.detail
    assert err.context.startswith(CONTEXT)


def test_missing_sheet_check_covers_every_sheet_name() -> None:
    with pytest.raises(MissingSheet) as exc_info:
        check_error_payload(False, {"error": {"message": "Unable to parse range: Story"}}, CONTEXT)
    assert exc_info.value.sheet_name == "Story"


def test_error_message_on_ok_response_is_ignored() -> None:
    check_error_payload(True, {"error": {"message": "Test error message"}}, CONTEXT)


def test_generic_error_uses_remote_message() -> None:
    with pytest.raises(SourceUnavailable, match="Test error message"):
        check_error_payload(False, {"error": {"message": "Test error message"}}, CONTEXT)


def test_404_error_has_specific_message() -> None:
    payload = {"error": {"code": 404, "message": "Requested entity was not found."}}
    with pytest.raises(SourceUnavailable, match="Could not find the data file"):
        _remote(FakeFetch(404, payload)).lookup()


def test_ok_response_without_value_ranges_is_malformed() -> None:
    with pytest.raises(MalformedSource):
        _remote(FakeFetch(200, {"valueRanges": [{"values": []}]})).lookup()


@pytest.mark.parametrize(  # type: ignore[misc]
    "steps_values",
    [
        [["ContentType", "Text"], "text"],
        [["ContentType", "Text"], None],
        [["ContentType", "Text"], 42],
        [["ContentType", "Text"], ["text", {"formattedValue": "x"}]],
        [["ContentType", "Text"], ["text", ["nested"]]],
    ],
)
def test_rows_that_are_not_lists_of_scalars_are_malformed(steps_values: list[Any]) -> None:
    payload = {"valueRanges": [OK_PAYLOAD["valueRanges"][0], {"values": steps_values}]}

    with pytest.raises(MalformedSource) as exc_info:
        _remote(FakeFetch(200, payload)).lookup()

    assert '"Steps"' in exc_info.value.detail
    assert exc_info.value.context.startswith(CONTEXT)


def test_remote_scalar_cells_are_kept() -> None:
    payload = {
        "valueRanges": [
            OK_PAYLOAD["valueRanges"][0],
            {"values": [["ContentType", "Latitude", "Text"], ["map", 47.5, True], ["text"]]},
        ]
    }

    tables = _remote(FakeFetch(200, payload)).lookup().unwrap()

    assert tables.steps[1] == ["map", 47.5, "TRUE"]
    assert tables.steps[2] == ["text"]


def test_transport_failure_becomes_source_unavailable() -> None:
    def broken(url: str) -> tuple[int, Mapping[str, Any]]:
        raise ConnectionResetError("peer reset")

    source = SheetsApiSource(sheet_url=SHEET_URL, fetch=broken)
    with pytest.raises(SourceUnavailable, match="peer reset"):
        source.lookup()


# --------------------------------------------------------------------------- #
# Default HTTP transport
# --------------------------------------------------------------------------- #


class _Response:
    """Stand-in for the object `urlopen` returns as a context manager."""

    def __init__(self, body: bytes, status: int = 200) -> None:
        self.status = status
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> _Response:
        return self

    def __exit__(self, *exc: object) -> None:
        return None


def _http_error(url: str, code: int, body: bytes) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(url, code, "error", Message(), io.BytesIO(body))


def test_http_get_json_decodes_body(monkeypatch: Any) -> None:
    seen: dict[str, Any] = {}

    def fake_urlopen(request: Any, timeout: float) -> _Response:
        seen["url"] = request.full_url
        seen["accept"] = request.get_header("Accept")
        seen["timeout"] = timeout
        return _Response(b'{"valueRanges": []}')

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    status, payload = http_get_json("https://example.test/values", timeout=4.0)

    assert status == 200
    assert payload == {"valueRanges": []}
    assert seen["url"] == "https://example.test/values"
    assert seen["accept"] == "application/json"
    assert seen["timeout"] == 4.0


def test_http_get_json_wraps_non_object_body(monkeypatch: Any) -> None:
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: _Response(b"[1, 2]"))

    assert http_get_json("https://example.test/values") == (200, {"value": [1, 2]})


def test_http_error_status_is_returned_with_its_payload(monkeypatch: Any) -> None:
    body = b'{"error": {"code": 400, "message": "Unable to parse range: Steps"}}'

    def fake_urlopen(request: Any, timeout: float) -> _Response:
        raise _http_error(request.full_url, 400, body)

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    status, payload = http_get_json("https://example.test/values")
    assert status == 400
    assert payload["error"]["code"] == 400

    with pytest.raises(MissingSheet) as exc_info:
        SheetsApiSource(sheet_url=SHEET_URL, api_key="k3y").lookup()
    assert exc_info.value.sheet_name == "Steps"


def test_unreachable_host_becomes_source_unavailable(monkeypatch: Any) -> None:
    def fake_urlopen(request: Any, timeout: float) -> _Response:
        raise urllib.error.URLError("Name or service not known")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(SourceUnavailable, match="Network error") as exc_info:
        SheetsApiSource(sheet_url=SHEET_URL, api_key="k3y").lookup()
    assert exc_info.value.context.startswith(CONTEXT)


@pytest.mark.parametrize(  # type: ignore[misc]
    "body", [b"<html>Service Unavailable</html>", b"\xff\xfe\x00"]
)
def test_non_json_body_becomes_source_unavailable(monkeypatch: Any, body: bytes) -> None:
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout: _Response(body, status=503)
    )

    with pytest.raises(SourceUnavailable, match="HTTP 503: response is not JSON"):
        http_get_json("https://example.test/values")


def test_from_settings_passes_fetch_timeout(monkeypatch: Any, tmp_path: Path) -> None:
    timeouts: list[float] = []

    def fake_urlopen(request: Any, timeout: float) -> _Response:
        timeouts.append(timeout)
        return _Response(b'{"valueRanges": [{"values": []}, {"values": []}]}')

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    cfg = Settings(workbook_path=tmp_path / "wb.xlsx", sheet_url=SHEET_URL, fetch_timeout=7.5)

    tables = TableSource.from_settings(cfg).resolve()

    assert timeouts == [7.5]
    assert tables.origin == "sheets-api"


# --------------------------------------------------------------------------- #
# Fallback chain
# --------------------------------------------------------------------------- #


def test_primary_not_found_falls_back_to_secondary(tmp_path: Path) -> None:
    fetch = FakeFetch()
    chain = TableSource(WorkbookSource(tmp_path / "missing.xlsx"), _remote(fetch))

    tables = chain.resolve()

    assert len(fetch.urls) == 1
    assert tables.origin == "sheets-api"


def test_primary_malformed_never_tries_secondary(tmp_path: Path) -> None:
    bad = tmp_path / "StoryData.xlsx"
    bad.write_bytes(b"corrupt")
    fetch = FakeFetch()
    chain = TableSource(WorkbookSource(bad), _remote(fetch))

    with pytest.raises(MalformedSource):
        chain.resolve()
    assert fetch.urls == []


def test_primary_missing_sheet_never_tries_secondary(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "s.xlsx", sheet_names=("Story", "Other"))
    fetch = FakeFetch()

    with pytest.raises(MissingSheet):
        TableSource(WorkbookSource(path), _remote(fetch)).resolve()
    assert fetch.urls == []


def test_primary_found_skips_secondary(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "StoryData.xlsx")
    fetch = FakeFetch()

    tables = TableSource(WorkbookSource(path), _remote(fetch)).resolve()

    assert tables.origin == "workbook"
    assert fetch.urls == []


def test_no_location_available(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable):
        TableSource(WorkbookSource(tmp_path / "missing.xlsx")).resolve()


def test_from_settings_builds_chain(tmp_path: Path) -> None:
    cfg = Settings(
        workbook_path=tmp_path / "wb.xlsx",
        sheet_url=SHEET_URL,
        sheets_api_key="abc",
    )
    fetch = FakeFetch()

    chain = TableSource.from_settings(cfg, fetch=fetch)

    assert chain.primary.path == tmp_path / "wb.xlsx"
    assert chain.secondary is not None
    assert chain.secondary.build_url().endswith("&key=abc")
    assert chain.resolve().origin == "sheets-api"


def test_from_settings_without_url_has_no_secondary(tmp_path: Path) -> None:
    cfg = Settings(workbook_path=tmp_path / "wb.xlsx", sheet_url=None)
    assert TableSource.from_settings(cfg).secondary is None
