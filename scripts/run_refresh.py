#!/usr/bin/env python3
"""Refresh every configured source once and print a summary."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from keynote_tracker.pipeline.refresh import run_refresh

logger = structlog.get_logger()


def print_progress(progress: dict):
    print(f"  [{progress['current']}/{progress['total']}] {progress['source']}")


def main():
    config_path = sys.argv[1] if len(sys.argv) > 1 else None

    print("\n" + "=" * 50)
    print("KEYNOTE TRACKER REFRESH")
    print("=" * 50 + "\n")

    try:
        batch = asyncio.run(run_refresh(config_path=config_path, on_progress=print_progress))
    except Exception as e:
        logger.error("refresh_aborted", error=str(e))
        sys.exit(1)

    print("\nRESULTS:")
    print(f"  Sources: {len(batch.successful)} ok, {len(batch.failed)} failed")
    print(f"  Announcements: {batch.total_announcements}")
    for result in batch.failed:
        print(f"  FAILED {result.source}: {result.error}")
    print()


if __name__ == "__main__":
    main()
