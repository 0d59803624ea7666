"""Contract tests for the scrollystory FastAPI application.

Each test builds its own app with `create_app(Settings(...))` pointing at a
workbook in `tmp_path`, so no test depends on the process environment.

Verified
--------
- `GET /health` returns status, environment and package version.
- `GET /story` returns the block tree; `GET /story/steps` the renderer attributes.
- Pipeline errors map to 422 (sheet content) or 502 (no reachable source),
  with the stage context in the JSON body.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from scrollystory import __version__ as PKG_VERSION
from scrollystory.api.app import create_app, status_for
from scrollystory.core.errors import MalformedSource, ScrollyError, SourceUnavailable
from scrollystory.core.settings import Settings
from scrollystory.ingest.template import TEMPLATE_STORY, write_workbook
from scrollystory.ingest.validator import STEPS_CONTEXT


def _client(workbook: Path) -> TestClient:
    return TestClient(create_app(Settings(workbook_path=workbook, sheet_url=None)))


def test_health_endpoint_contract(tmp_path: Path) -> None:
    resp = _client(tmp_path / "any.xlsx").get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["environment"] in {"dev", "test", "prod"}
    assert data["version"] == PKG_VERSION


def test_story_endpoint_returns_blocks(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "StoryData.xlsx")

    resp = _client(path).get("/story")

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["story"]["title"] == "A Scrolly Story"
    scrolly = data["blocks"][1]
    assert scrolly["kind"] == "scrolly"
    assert [s["step_number"] for s in scrolly["steps"]] == [2, 3, 4]
    assert scrolly["text_width_percent"] == 40


def test_story_steps_endpoint_omits_absent_attributes(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "StoryData.xlsx")

    resp = _client(path).get("/story/steps")

    assert resp.status_code == 200, resp.text
    steps = resp.json()
    assert [s["step"] for s in steps] == [2, 3, 4]
    assert all(s["stickyId"] == 2 for s in steps)
    assert all(s["container"] == "sticky-map-container-2" for s in steps)
    map_attrs = steps[1]["attributes"]
    assert map_attrs["contentType"] == "map"
    assert map_attrs["zoomLevel"] == "11"
    assert "filePath" not in map_attrs


def test_validation_error_is_422(tmp_path: Path) -> None:
    steps = [["ContentType", "Text"], ["image", "no file path"]]
    path = write_workbook(tmp_path / "bad.xlsx", TEMPLATE_STORY, steps)

    resp = _client(path).get("/story")

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "ValidationError"
    assert body["context"] == STEPS_CONTEXT
    assert body["violations"][0]["field"] == "file_path"
    assert body["path"] == "/story"


def test_missing_sheet_is_422(tmp_path: Path) -> None:
    path = write_workbook(tmp_path / "s.xlsx", sheet_names=("Story", "Other"))

    resp = _client(path).get("/story")

    assert resp.status_code == 422
    assert resp.json()["sheet"] == "Steps"


def test_corrupt_workbook_is_422(tmp_path: Path) -> None:
    path = tmp_path / "StoryData.xlsx"
    path.write_bytes(b"corrupt")

    resp = _client(path).get("/story")

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "MalformedSource"
    assert body["context"] == f'Loading "{path}" file from disk'


def test_no_source_is_502(tmp_path: Path) -> None:
    resp = _client(tmp_path / "absent.xlsx").get("/story")

    assert resp.status_code == 502
    assert resp.json()["error"] == "SourceUnavailable"


@pytest.mark.parametrize(  # type: ignore[misc]
    ("exc", "code"),
    [
        (MalformedSource("c", "d"), 422),
        (SourceUnavailable("c", "d"), 502),
        (ScrollyError("c", "d"), 500),
    ],
)
def test_status_for(exc: ScrollyError, code: int) -> None:
    assert status_for(exc) == code
