"""Shared test fixtures for fitcheck tests."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from common.auth import Identity
from fitcheck.config import Settings
from fitcheck.constants import ROLE_MEMBER
from fitcheck.errors import DuplicateCheckInError
from fitcheck.services.checkin.checkin_service import CheckInService
from fitcheck.services.coach.dashboard_service import DashboardService
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.feed.feed_service import FeedService
from fitcheck.services.media.blob_store import BlobRef, BlobStore, StoredBlob, validate_upload
from fitcheck.services.media.photo_service import PhotoService
from fitcheck.services.member.member_service import MemberService


# ─────────────────────────────────────────────────────────────────
# Clock
# ─────────────────────────────────────────────────────────────────

class FakeClock:
    """Callable clock that tests move forward explicitly."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    # Monday 2024-01-15, mid-morning UTC
    return FakeClock(datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc))


# ─────────────────────────────────────────────────────────────────
# In-memory store
# ─────────────────────────────────────────────────────────────────

def _oid(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class FakeStore:
    """
    In-memory implementation of the MongoStore interface.

    Enforces the (memberId, calendarDay) uniqueness the real unique index
    provides. No method awaits before mutating, so concurrent tasks see the
    same atomicity as single-document Mongo writes.
    """

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.members: Dict[str, Dict[str, Any]] = {}
        self.checkins: Dict[ObjectId, Dict[str, Any]] = {}
        self.photos: Dict[ObjectId, Dict[str, Any]] = {}
        self.aggregates: Dict[str, Dict[str, Any]] = {}

    async def ensure_indexes(self) -> None:
        return None

    # Members

    async def upsert_member(self, member_id, username=None, role=None):
        now = self.clock()
        member = self.members.get(member_id)
        if member is None:
            member = {
                "_id": member_id,
                "username": None,
                "role": ROLE_MEMBER,
                "currentStreak": 0,
                "longestStreak": 0,
                "lastCheckInDate": None,
                "lastPhotoDate": None,
                "createdAt": now,
            }
            self.members[member_id] = member
        if username is not None:
            member["username"] = username
        if role is not None:
            member["role"] = role
        member["lastActiveAt"] = now
        member["updatedAt"] = now
        return copy.deepcopy(member)

    async def get_member(self, member_id):
        member = self.members.get(member_id)
        return copy.deepcopy(member) if member else None

    async def update_member(self, member_id, fields):
        member = self.members.get(member_id)
        if member is None:
            return None
        member.update(fields)
        member["updatedAt"] = self.clock()
        return copy.deepcopy(member)

    async def list_members(self, role=ROLE_MEMBER):
        return [copy.deepcopy(m) for m in self.members.values() if m.get("role") == role]

    async def count_members(self, role=ROLE_MEMBER):
        return len([m for m in self.members.values() if m.get("role") == role])

    # Check-ins

    async def insert_checkin(self, doc):
        for existing in self.checkins.values():
            if existing["memberId"] == doc["memberId"] and existing["calendarDay"] == doc["calendarDay"]:
                raise DuplicateCheckInError()
        doc["_id"] = ObjectId()
        self.checkins[doc["_id"]] = copy.deepcopy(doc)
        return doc

    async def get_checkin(self, checkin_id):
        checkin = self.checkins.get(_oid(checkin_id))
        return copy.deepcopy(checkin) if checkin else None

    async def find_checkin(self, member_id, day_key):
        for checkin in self.checkins.values():
            if checkin["memberId"] == member_id and checkin["calendarDay"] == day_key:
                return copy.deepcopy(checkin)
        return None

    async def find_checkin_by_photo(self, photo_id):
        oid = _oid(photo_id)
        for checkin in self.checkins.values():
            if oid is not None and checkin.get("photoId") == oid:
                return copy.deepcopy(checkin)
        return None

    async def update_checkin(self, checkin_id, fields):
        checkin = self.checkins.get(_oid(checkin_id))
        if checkin is None:
            return None
        checkin.update(fields)
        return copy.deepcopy(checkin)

    async def delete_checkin(self, checkin_id):
        return self.checkins.pop(_oid(checkin_id), None) is not None

    async def delete_member_checkins(self, member_id):
        ids = [k for k, c in self.checkins.items() if c["memberId"] == member_id]
        days = {self.checkins[k]["calendarDay"] for k in ids}
        for k in ids:
            del self.checkins[k]
        return sorted(days)

    def _with_photo(self, checkin):
        result = copy.deepcopy(checkin)
        photo = self.photos.get(checkin.get("photoId")) if checkin.get("photoId") else None
        if photo:
            result["photo"] = copy.deepcopy(photo)
        return result

    async def list_member_checkins(self, member_id, limit, offset=0):
        rows = sorted(
            (c for c in self.checkins.values() if c["memberId"] == member_id),
            key=lambda c: c["calendarDay"],
            reverse=True,
        )
        return [self._with_photo(c) for c in rows[offset:offset + limit]]

    async def list_member_checkin_days(self, member_id, before_day):
        rows = sorted(
            (c for c in self.checkins.values() if c["memberId"] == member_id and c["calendarDay"] < before_day),
            key=lambda c: c["calendarDay"],
        )
        return [{"calendarDay": c["calendarDay"], "kind": c["kind"]} for c in rows]

    async def count_member_checkins(self, member_id):
        return len([c for c in self.checkins.values() if c["memberId"] == member_id])

    async def list_public_checkins(self, limit, offset=0):
        rows = [self._with_photo(c) for c in self.checkins.values()]
        rows = [
            c for c in rows
            if c.get("isNotePublic") or (c.get("photo") and c["photo"].get("isPublic"))
        ]
        rows.sort(key=lambda c: (c["createdAt"], c["_id"]), reverse=True)
        page = rows[offset:offset + limit]
        for row in page:
            author = self.members.get(row["memberId"])
            row["authorUsername"] = author.get("username") if author else None
        return page

    async def count_checkins(self, day_key, kind):
        return len([
            c for c in self.checkins.values()
            if c["calendarDay"] == day_key and c["kind"] == kind
        ])

    async def count_checkins_since(self, since, kind=None):
        return len([
            c for c in self.checkins.values()
            if c["createdAt"] >= since and (kind is None or c["kind"] == kind)
        ])

    # Aggregates

    async def upsert_daily_aggregate(self, day_key, fields):
        row = {"_id": day_key, **fields, "updatedAt": self.clock()}
        self.aggregates[day_key] = row
        return copy.deepcopy(row)

    async def get_daily_aggregate(self, day_key):
        row = self.aggregates.get(day_key)
        return copy.deepcopy(row) if row else None

    # Photos

    async def insert_photo(self, doc):
        doc["_id"] = ObjectId()
        self.photos[doc["_id"]] = copy.deepcopy(doc)
        return doc

    async def get_photo(self, photo_id):
        photo = self.photos.get(_oid(photo_id))
        return copy.deepcopy(photo) if photo else None

    async def find_photo_by_blob(self, blob_id):
        for photo in self.photos.values():
            if photo.get("blobId") == blob_id:
                return copy.deepcopy(photo)
        return None

    async def update_photo(self, photo_id, fields):
        photo = self.photos.get(_oid(photo_id))
        if photo is None:
            return None
        photo.update(fields)
        return copy.deepcopy(photo)

    async def count_photos(self, member_id, since=None):
        return len([
            p for p in self.photos.values()
            if p["memberId"] == member_id and (since is None or p["createdAt"] >= since)
        ])

    async def photo_counts_by_member(self, since=None):
        counts: Dict[str, int] = {}
        for photo in self.photos.values():
            if since is None or photo["createdAt"] >= since:
                counts[photo["memberId"]] = counts.get(photo["memberId"], 0) + 1
        return counts

    async def delete_member_photos(self, member_id):
        ids = [k for k, p in self.photos.items() if p["memberId"] == member_id]
        for k in ids:
            del self.photos[k]
        return len(ids)


class FakeBlobStore(BlobStore):
    """In-memory BlobStore applying the same upload validation."""

    def __init__(self, max_bytes: int = 10 * 1024 * 1024, allowed_types: Optional[List[str]] = None):
        self.blobs: Dict[str, StoredBlob] = {}
        self.max_bytes = max_bytes
        self.allowed_types = allowed_types

    async def put(self, owner_id, data, mime_type):
        validate_upload(data, mime_type, self.max_bytes, self.allowed_types)
        blob_id = str(ObjectId())
        self.blobs[blob_id] = StoredBlob(blob_id=blob_id, owner_id=owner_id, data=data, mime_type=mime_type)
        return BlobRef(
            blob_id=blob_id,
            url=f"/api/v1/media/photos/{blob_id}",
            size=len(data),
            mime_type=mime_type,
        )

    async def get(self, blob_id):
        return self.blobs.get(blob_id)

    async def delete_for_owner(self, owner_id):
        ids = [k for k, b in self.blobs.items() if b.owner_id == owner_id]
        for k in ids:
            del self.blobs[k]
        return len(ids)


# ─────────────────────────────────────────────────────────────────
# Service fixtures
# ─────────────────────────────────────────────────────────────────

@pytest.fixture
def store(clock):
    return FakeStore(clock)


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def blob_store_factory():
    return FakeBlobStore


@pytest.fixture
def test_settings():
    return Settings(
        ENVIRONMENT="development",
        JWT_SECRET="test-secret",
        ALLOW_PLAIN_USER_TOKENS=True,
        _env_file=None,
    )


@pytest.fixture
def member_service(store, blob_store):
    return MemberService(store=store, blob_store=blob_store)


@pytest.fixture
def checkin_service(store, photo_service, clock):
    return CheckInService(
        store=store,
        photo_service=photo_service,
        deletion_window_minutes=30,
        history_max_limit=365,
        now=clock,
    )


@pytest.fixture
def aggregate_service(store, clock):
    return AggregateService(store=store, now=clock)


@pytest.fixture
def feed_service(store):
    return FeedService(store=store, max_limit=100)


@pytest.fixture
def dashboard_service(store, clock):
    return DashboardService(store=store, photos_per_week_required=2, now=clock)


@pytest.fixture
def photo_service(store, blob_store, member_service, clock):
    return PhotoService(store=store, blob_store=blob_store, member_service=member_service, now=clock)


@pytest.fixture
def alice():
    return Identity(member_id="user_alice", username="alice")


@pytest.fixture
def bob():
    return Identity(member_id="user_bob", username="bob")


@pytest.fixture
def coach():
    return Identity(member_id="user_coach", username="coach", role="COACH")


# ─────────────────────────────────────────────────────────────────
# Motor mocks
# ─────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() and aggregate() return cursors synchronously (not
    # coroutines), so use MagicMock for them. Async methods like find_one,
    # insert_one, count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    collection.aggregate = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db
