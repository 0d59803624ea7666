"""
ASGI Entry Point for the scrollystory API.

This module exposes the `app` object required by ASGI servers (Uvicorn).
It loads environment variables from `.env` before the application factory
reads settings.

Usage
-----
Run via the module entry point:
    $ python -m scrollystory.api.server

Or via uvicorn directly:
    $ uvicorn scrollystory.api.server:app --reload
"""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from scrollystory.api.app import get_app
from scrollystory.core.settings import load_settings

# Load environment variables from .env BEFORE building the app, then drop any
# settings cached at import time so they are re-read.
load_dotenv(dotenv_path=Path(".env"))
load_settings.cache_clear()

app = get_app()


def main() -> None:
    """Run the API server locally for development."""
    cfg = load_settings()
    print(f"{'[ Story Sources ]':=^60}")
    workbook_state = "✅ Found" if cfg.workbook_path.is_file() else "❌ Missing"
    print(f"{'Workbook':<20} : {workbook_state} ({cfg.workbook_path})")
    sheet_state = cfg.sheet_url if cfg.has_secondary_source else "❌ Not configured"
    print(f"{'Google Sheet':<20} : {sheet_state}")
    key_state = "✅ Loaded" if cfg.sheets_api_key else "❌ Missing"
    print(f"{'Sheets API key':<20} : {key_state}")
    print(f"{'='*60}\n")

    host = os.getenv("SCROLLY_HOST", "127.0.0.1")
    port = int(os.getenv("SCROLLY_PORT", "8000"))
    uvicorn.run("scrollystory.api.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
