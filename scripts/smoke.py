# scripts/smoke.py
"""
Smoke Test Script for the scrollystory pipeline.

Usage
-----
1. Run against a freshly written template workbook (no network):
    $ uv run python scripts/smoke.py

2. Run against an existing workbook, falling back to the Google Sheet
   configured in `.env` when the file does not exist:
    $ uv run python scripts/smoke.py --workbook data/StoryData.xlsx
"""

import argparse
import logging
import sys
import tempfile
from pathlib import Path

from dotenv import load_dotenv

from scrollystory.core.contracts.block import ScrollyBlock
from scrollystory.core.errors import ScrollyError
from scrollystory.core.settings import load_settings
from scrollystory.ingest.template import write_workbook
from scrollystory.pipelines.scrolly_story import run_pipeline

env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


def main() -> int:
    """Execute the smoke test workflow and return a process exit code."""
    parser = argparse.ArgumentParser(description="Run scrollystory smoke test")
    parser.add_argument("--workbook", "-w", type=str, help="Path to a Story/Steps .xlsx workbook")
    args = parser.parse_args()

    with tempfile.TemporaryDirectory() as tmp:
        if args.workbook:
            workbook = Path(args.workbook)
            print(f"\n📂 Using workbook: {workbook}")
        else:
            workbook = write_workbook(Path(tmp) / "StoryData.xlsx")
            print(f"\n📝 Wrote template workbook: {workbook}")

        cfg = load_settings().model_copy(update={"workbook_path": workbook})
        try:
            result = run_pipeline(settings=cfg)
        except ScrollyError as exc:
            print(f"\n❌ {type(exc).__name__} while: {exc.context}\n   {exc.detail}")
            return 1

    print("\n" + "=" * 60)
    print(f"✅ {result.story.title} ({result.origin})")
    print("=" * 60)
    for block in result.blocks:
        if isinstance(block, ScrollyBlock):
            print(f"  scrolly #{block.sticky_id}: steps {block.step_numbers}")
        else:
            print(f"  text    {block.step_number}")
    print(f"\n{result.step_count} steps, sticky ids {result.sticky_ids}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
