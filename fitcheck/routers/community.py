"""
FastAPI router for community endpoints.

Public feed and daily community stats.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import offset_page_response, success_response
from fitcheck.dependencies import get_aggregate_service, get_feed_service, require_member
from fitcheck.pipelines import community as pipelines
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.feed.feed_service import FeedService

router = APIRouter(tags=["community"])


@router.get("/feed")
async def get_feed(
    member: Annotated[Dict[str, Any], Depends(require_member)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
    limit: int = Query(20),
    offset: int = Query(0),
):
    """
    Get the public feed, newest first.

    Notes and photos are only shown when public.
    """
    entries = await pipelines.get_feed_pipeline(feed_service=feed_service, limit=limit, offset=offset)
    return offset_page_response(entries, limit=limit, offset=offset)


@router.get("/community/stats")
async def get_community_stats(
    member: Annotated[Dict[str, Any], Depends(require_member)],
    aggregate_service: Annotated[AggregateService, Depends(get_aggregate_service)],
    date: Optional[str] = Query(None, description="YYYY-MM-DD format, defaults to today"),
):
    """Get the community aggregate for a day."""
    stats = await pipelines.get_community_stats_pipeline(
        aggregate_service=aggregate_service,
        date_str=date,
    )
    return success_response({"stats": stats})
