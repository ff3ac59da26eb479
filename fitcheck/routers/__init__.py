"""
fitcheck API routers.
"""

from fitcheck.routers.member import router as member_router
from fitcheck.routers.checkin import router as checkin_router
from fitcheck.routers.community import router as community_router
from fitcheck.routers.coach import router as coach_router
from fitcheck.routers.media import router as media_router

__all__ = [
    "member_router",
    "checkin_router",
    "community_router",
    "coach_router",
    "media_router",
]
