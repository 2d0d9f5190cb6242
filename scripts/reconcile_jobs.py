#!/usr/bin/env python3
"""
Operator script: fail enhancement jobs left in "running".

A job stays running forever if the process died while waiting on the
restoration model. Run this after a crash or on a schedule.
"""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path to import our modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from photo_restore.config import settings
from photo_restore.database import AsyncSessionLocal
from photo_restore.services.enhancement_job_service import EnhancementJobService

logger = logging.getLogger("reconcile_jobs")


async def reconcile(minutes: int) -> int:
    """Mark jobs running longer than `minutes` as failed; returns how many"""
    async with AsyncSessionLocal() as session:
        try:
            count = await EnhancementJobService.fail_stale_running_jobs(
                session, timedelta(minutes=minutes)
            )
            await session.commit()
            return count
        except Exception as e:
            await session.rollback()
            logger.error(f"Reconciliation failed: {e}")
            raise


async def main():
    """Main function"""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--minutes",
        type=int,
        default=settings.stale_job_minutes,
        help="Fail jobs that have been running longer than this",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    count = await reconcile(args.minutes)
    print(f"Marked {count} stale enhancement jobs as failed")


if __name__ == "__main__":
    asyncio.run(main())
