"""
Community pipeline functions.

Public feed and daily community stats.
"""

import logging
from typing import Any, Dict, List, Optional

from fitcheck.services.checkin.calendar_day import parse_key
from fitcheck.services.community.aggregate_service import AggregateService, format_aggregate
from fitcheck.services.feed.feed_service import FeedService

logger = logging.getLogger(__name__)


async def get_feed_pipeline(
    feed_service: FeedService,
    limit: int = 20,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """
    Get a page of the public feed.

    Returns:
        Privacy-projected feed entries, newest first
    """
    return await feed_service.public_feed(limit=limit, offset=offset)


async def get_community_stats_pipeline(
    aggregate_service: AggregateService,
    date_str: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Get the community aggregate for a day.

    Args:
        aggregate_service: Aggregate reads
        date_str: Optional YYYY-MM-DD (defaults to today)

    Returns:
        Formatted aggregate

    Raises:
        ValidationException: date_str is not a valid date
    """
    day = parse_key(date_str) if date_str else aggregate_service.today()
    aggregate = await aggregate_service.get_for_day(day)
    return format_aggregate(aggregate)
