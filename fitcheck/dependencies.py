"""
FastAPI dependencies for fitcheck.

Services are built once in the application lifespan by build_services() and
kept on app.state. Getters read them from there; nothing here is a module
global, so tests can build a container around any store.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Callable, Dict, Optional

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import Identity, IdentityProvider, JWTIdentityProvider, create_identity_dependency
from common.utils.exceptions import ForbiddenException

from fitcheck.config import Settings
from fitcheck.constants import ROLE_COACH
from fitcheck.database.store import MongoStore
from fitcheck.services.checkin.calendar_day import utcnow
from fitcheck.services.checkin.checkin_service import CheckInService
from fitcheck.services.coach.dashboard_service import DashboardService
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.feed.feed_service import FeedService
from fitcheck.services.media.blob_store import BlobStore, MongoBlobStore
from fitcheck.services.media.photo_service import PhotoService
from fitcheck.services.member.member_service import MemberService


@dataclass
class Services:
    """Everything the routers need, wired once per process."""

    settings: Settings
    store: Any
    blob_store: BlobStore
    identity_provider: IdentityProvider
    member_service: MemberService
    checkin_service: CheckInService
    aggregate_service: AggregateService
    feed_service: FeedService
    dashboard_service: DashboardService
    photo_service: PhotoService


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def build_services(
    settings: Settings,
    store: Any,
    blob_store: BlobStore,
    now: Optional[Callable[[], datetime]] = None,
    identity_provider: Optional[IdentityProvider] = None,
) -> Services:
    """
    Wire all services around a store and blob store.

    Args:
        settings: Application settings
        store: Durable store (MongoStore in production)
        blob_store: Photo blob storage
        now: Shared clock (defaults to UTC now)
        identity_provider: Override the JWT provider built from settings

    Returns:
        Services container
    """
    now = now or utcnow

    member_service = MemberService(store=store, blob_store=blob_store)
    photo_service = PhotoService(
        store=store,
        blob_store=blob_store,
        member_service=member_service,
        now=now,
    )

    return Services(
        settings=settings,
        store=store,
        blob_store=blob_store,
        identity_provider=identity_provider or JWTIdentityProvider(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            allow_plain_ids=settings.plain_tokens_enabled(),
        ),
        member_service=member_service,
        checkin_service=CheckInService(
            store=store,
            photo_service=photo_service,
            deletion_window_minutes=settings.CHECKIN_DELETION_WINDOW_MINUTES,
            history_max_limit=settings.HISTORY_MAX_LIMIT,
            now=now,
        ),
        aggregate_service=AggregateService(store=store, now=now),
        feed_service=FeedService(store=store, max_limit=settings.FEED_MAX_LIMIT),
        dashboard_service=DashboardService(
            store=store,
            photos_per_week_required=settings.PHOTOS_PER_WEEK_REQUIRED,
            now=now,
        ),
        photo_service=photo_service,
    )


def build_mongo_services(db: AsyncIOMotorDatabase, settings: Settings) -> Services:
    """Wire services over a Motor database."""
    blob_store = MongoBlobStore(
        db,
        max_bytes=settings.PHOTO_MAX_BYTES,
        allowed_types=settings.get_photo_allowed_types(),
    )
    return build_services(settings=settings, store=MongoStore(db), blob_store=blob_store)


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_services(request: Request) -> Services:
    """Get the services container from app state."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized.")
    return services


def get_settings(services: Annotated[Services, Depends(get_services)]) -> Settings:
    return services.settings


def get_identity_provider(services: Annotated[Services, Depends(get_services)]) -> IdentityProvider:
    return services.identity_provider


def get_member_service(services: Annotated[Services, Depends(get_services)]) -> MemberService:
    return services.member_service


def get_checkin_service(services: Annotated[Services, Depends(get_services)]) -> CheckInService:
    return services.checkin_service


def get_aggregate_service(services: Annotated[Services, Depends(get_services)]) -> AggregateService:
    return services.aggregate_service


def get_feed_service(services: Annotated[Services, Depends(get_services)]) -> FeedService:
    return services.feed_service


def get_dashboard_service(services: Annotated[Services, Depends(get_services)]) -> DashboardService:
    return services.dashboard_service


def get_photo_service(services: Annotated[Services, Depends(get_services)]) -> PhotoService:
    return services.photo_service


# ─────────────────────────────────────────────────────────────────
# Identity
# ─────────────────────────────────────────────────────────────────

require_identity = create_identity_dependency(get_identity_provider)


async def require_member(
    identity: Annotated[Identity, Depends(require_identity)],
    member_service: Annotated[MemberService, Depends(get_member_service)],
) -> Dict[str, Any]:
    """Dependency that resolves the caller and provisions them on first contact."""
    return await member_service.ensure_member(identity)


async def require_coach(
    member: Annotated[Dict[str, Any], Depends(require_member)],
) -> Dict[str, Any]:
    """Dependency that requires the COACH role."""
    if member.get("role") != ROLE_COACH:
        raise ForbiddenException(message="Coach access required", code="COACH_REQUIRED")
    return member
