"""
Community aggregate recompute job.

Re-runs the daily aggregate for the last N days. Recomputation is a full
count followed by an upsert, so re-running is always safe; this repairs any
day whose recompute failed after a check-in was written.

Usage:
    Run via CRON:
        15 * * * * cd /path/to/project && python -m jobs.recompute_aggregates

    Or run directly:
        python -m jobs.recompute_aggregates --days 30
"""

import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta
from typing import Any, Dict, Optional

from common.database import MongoDB
from fitcheck.config import settings
from fitcheck.database.store import MongoStore
from fitcheck.services.checkin.calendar_day import to_key, today as current_day
from fitcheck.services.community.aggregate_service import AggregateService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7


class RecomputeAggregatesJob:
    """
    Recomputes the DailyAggregate rows for a trailing window of days.
    """

    def __init__(self, aggregate_service: AggregateService, days: int = DEFAULT_DAYS):
        """
        Initialize the recompute job.

        Args:
            aggregate_service: Aggregator to run per day
            days: Number of days to recompute, ending today
        """
        if days < 1:
            raise ValueError("days must be at least 1")

        self._aggregate_service = aggregate_service
        self._days = days

    async def run(self, end_day: Optional[date] = None) -> Dict[str, Any]:
        """
        Execute the recompute job.

        Args:
            end_day: Last day to recompute (defaults to today)

        Returns:
            Dict with job results including recomputed days and any errors
        """
        end_day = end_day or current_day()
        logger.info(f"Starting aggregate recompute for {self._days} days ending {to_key(end_day)}")

        results: Dict[str, Any] = {
            "daysRecomputed": [],
            "errors": [],
        }

        for offset in range(self._days):
            day = end_day - timedelta(days=offset)
            try:
                await self._aggregate_service.recompute(day)
                results["daysRecomputed"].append(to_key(day))
            except Exception as e:
                logger.error(f"Failed to recompute aggregate for {to_key(day)}: {e}")
                results["errors"].append({"date": to_key(day), "error": str(e)})

        logger.info(
            f"Aggregate recompute finished: {len(results['daysRecomputed'])} days, "
            f"{len(results['errors'])} errors"
        )
        return results


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recompute community daily aggregates")
    parser.add_argument(
        "--days",
        type=int,
        default=DEFAULT_DAYS,
        help=f"Number of days to recompute, ending today (default: {DEFAULT_DAYS})",
    )
    return parser.parse_args(argv)


async def main(argv=None):
    """Main entry point for the aggregate recompute job."""
    args = parse_args(argv)

    database = MongoDB()
    await database.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
        timeout_ms=settings.MONGODB_TIMEOUT_MS,
    )

    try:
        job = RecomputeAggregatesJob(
            aggregate_service=AggregateService(MongoStore(database.db)),
            days=args.days,
        )
        results = await job.run()

        print("\n=== Aggregate Recompute Results ===")
        print(f"Days Recomputed: {len(results['daysRecomputed'])}")

        if results["errors"]:
            print(f"\nErrors ({len(results['errors'])}):")
            for error in results["errors"]:
                print(f"  - {error['date']}: {error['error']}")

        exit_code = 1 if results["errors"] else 0
    finally:
        await database.disconnect()

    sys.exit(exit_code)


if __name__ == "__main__":
    asyncio.run(main())
