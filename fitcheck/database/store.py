"""
MongoDB-backed durable store.

Answers every query the check-in engine needs and nothing more:

    - upsert-by-identity for members
    - atomic unique-constrained insert of check-ins keyed by
      (memberId, calendarDay)
    - point and filtered range reads over check-ins
    - upsert-by-day for daily aggregates
    - count queries over check-ins by day and kind

The one-check-in-per-day rule is enforced by a unique index, never by a
read-before-write. Storage exceptions are translated here: duplicate keys
become DuplicateCheckInError, timeouts and lost connections become
StorageUnavailableError.
"""

import functools
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, ExecutionTimeout, WTimeoutError

from fitcheck.constants import ROLE_MEMBER
from fitcheck.database import collections
from fitcheck.errors import DuplicateCheckInError, StorageUnavailableError
from fitcheck.services.checkin.calendar_day import utcnow

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (ConnectionFailure, ExecutionTimeout, WTimeoutError)

CHECKIN_UNIQUE_INDEX = "member_day_unique"


def translate_storage_errors(func):
    """Surface transient driver failures as a retryable StorageUnavailableError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except TRANSIENT_ERRORS as e:
            logger.error(f"Storage unavailable during {func.__name__}: {e}")
            raise StorageUnavailableError()

    return wrapper


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Convert a string id to ObjectId, returning None when malformed."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except InvalidId:
        return None


class MongoStore:
    """
    Storage capability over a Motor database.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize MongoStore.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._members = db[collections.MEMBERS]
        self._checkins = db[collections.CHECKINS]
        self._photos = db[collections.PHOTOS]
        self._aggregates = db[collections.DAILY_AGGREGATES]

    @translate_storage_errors
    async def ensure_indexes(self) -> None:
        """Create the unique check-in index and supporting query indexes."""
        await self._checkins.create_index(
            [("memberId", ASCENDING), ("calendarDay", ASCENDING)],
            unique=True,
            name=CHECKIN_UNIQUE_INDEX,
        )
        await self._checkins.create_index([("calendarDay", ASCENDING), ("kind", ASCENDING)])
        await self._checkins.create_index([("createdAt", DESCENDING)])
        await self._checkins.create_index([("isNotePublic", ASCENDING), ("createdAt", DESCENDING)])
        await self._checkins.create_index([("photoId", ASCENDING)], sparse=True)
        await self._photos.create_index([("memberId", ASCENDING), ("createdAt", DESCENDING)])
        await self._photos.create_index([("isPublic", ASCENDING)])
        await self._members.create_index([("role", ASCENDING)])
        logger.info("Storage indexes ensured")

    # ─────────────────────────────────────────────────────────────────
    # Members
    # ─────────────────────────────────────────────────────────────────

    @translate_storage_errors
    async def upsert_member(
        self,
        member_id: str,
        username: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create the member on first contact or refresh their identity fields.

        Streak fields are only initialised on insert.
        """
        now = utcnow()
        set_fields: Dict[str, Any] = {"lastActiveAt": now, "updatedAt": now}
        on_insert: Dict[str, Any] = {
            "currentStreak": 0,
            "longestStreak": 0,
            "lastCheckInDate": None,
            "lastPhotoDate": None,
            "createdAt": now,
        }

        if username is not None:
            set_fields["username"] = username
        else:
            on_insert["username"] = None

        if role is not None:
            set_fields["role"] = role
        else:
            on_insert["role"] = ROLE_MEMBER

        update = {"$set": set_fields, "$setOnInsert": on_insert}

        try:
            return await self._members.find_one_and_update(
                {"_id": member_id}, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # Two first-contact upserts raced; the other one inserted.
            return await self._members.find_one_and_update(
                {"_id": member_id}, update, return_document=ReturnDocument.AFTER
            )

    @translate_storage_errors
    async def get_member(self, member_id: str) -> Optional[Dict[str, Any]]:
        return await self._members.find_one({"_id": member_id})

    @translate_storage_errors
    async def update_member(self, member_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set absolute field values on a member."""
        return await self._members.find_one_and_update(
            {"_id": member_id},
            {"$set": {**fields, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    @translate_storage_errors
    async def list_members(self, role: str = ROLE_MEMBER) -> List[Dict[str, Any]]:
        cursor = self._members.find({"role": role}).sort("_id", ASCENDING)
        return await cursor.to_list(length=None)

    @translate_storage_errors
    async def count_members(self, role: str = ROLE_MEMBER) -> int:
        return await self._members.count_documents({"role": role})

    # ─────────────────────────────────────────────────────────────────
    # Check-ins
    # ─────────────────────────────────────────────────────────────────

    @translate_storage_errors
    async def insert_checkin(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a check-in, relying on the unique (memberId, calendarDay) index.

        Raises:
            DuplicateCheckInError: A check-in already exists for that day
        """
        try:
            result = await self._checkins.insert_one(doc)
        except DuplicateKeyError:
            logger.info(f"Duplicate check-in rejected for {doc.get('memberId')} on {doc.get('calendarDay')}")
            raise DuplicateCheckInError()

        doc["_id"] = result.inserted_id
        return doc

    @translate_storage_errors
    async def get_checkin(self, checkin_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(checkin_id)
        if oid is None:
            return None
        return await self._checkins.find_one({"_id": oid})

    @translate_storage_errors
    async def find_checkin(self, member_id: str, day_key: str) -> Optional[Dict[str, Any]]:
        return await self._checkins.find_one({"memberId": member_id, "calendarDay": day_key})

    @translate_storage_errors
    async def find_checkin_by_photo(self, photo_id: Any) -> Optional[Dict[str, Any]]:
        oid = to_object_id(photo_id)
        if oid is None:
            return None
        return await self._checkins.find_one({"photoId": oid})

    @translate_storage_errors
    async def update_checkin(self, checkin_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = to_object_id(checkin_id)
        if oid is None:
            return None
        return await self._checkins.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    @translate_storage_errors
    async def delete_checkin(self, checkin_id: str) -> bool:
        oid = to_object_id(checkin_id)
        if oid is None:
            return False
        result = await self._checkins.delete_one({"_id": oid})
        return result.deleted_count > 0

    @translate_storage_errors
    async def delete_member_checkins(self, member_id: str) -> List[str]:
        """Delete all of a member's check-ins and return the days they covered."""
        days = await self._checkins.distinct("calendarDay", {"memberId": member_id})
        await self._checkins.delete_many({"memberId": member_id})
        return sorted(days)

    @translate_storage_errors
    async def list_member_checkins(
        self,
        member_id: str,
        limit: int,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """A member's check-ins, newest day first, each with its photo embedded."""
        pipeline = [
            {"$match": {"memberId": member_id}},
            {"$sort": {"calendarDay": DESCENDING}},
            {"$skip": offset},
            {"$limit": limit},
            *self._embed_photo_stages(),
        ]
        return await self._checkins.aggregate(pipeline).to_list(length=limit)

    @translate_storage_errors
    async def list_member_checkin_days(self, member_id: str, before_day: str) -> List[Dict[str, Any]]:
        """Day and kind of each of a member's check-ins before a day, oldest first."""
        cursor = self._checkins.find(
            {"memberId": member_id, "calendarDay": {"$lt": before_day}},
            {"_id": 0, "calendarDay": 1, "kind": 1},
        ).sort("calendarDay", ASCENDING)
        return await cursor.to_list(length=None)

    @translate_storage_errors
    async def count_member_checkins(self, member_id: str) -> int:
        return await self._checkins.count_documents({"memberId": member_id})

    @translate_storage_errors
    async def list_public_checkins(self, limit: int, offset: int = 0) -> List[Dict[str, Any]]:
        """
        Check-ins whose note or linked photo is public, newest first.

        Each result carries the linked photo (if any) under "photo" and the
        author's username under "authorUsername". Visibility of the individual
        fields is NOT filtered here.

        Candidates are matched on indexed check-in fields first; photos and
        authors are joined onto the page only.
        """
        public_photo_ids = await self._photos.distinct("_id", {"isPublic": True})

        pipeline = [
            {"$match": {"$or": [
                {"isNotePublic": True},
                {"photoId": {"$in": public_photo_ids}},
            ]}},
            {"$sort": {"createdAt": DESCENDING, "_id": DESCENDING}},
            {"$skip": offset},
            {"$limit": limit},
            *self._embed_photo_stages(),
            {"$lookup": {
                "from": collections.MEMBERS,
                "localField": "memberId",
                "foreignField": "_id",
                "as": "author",
            }},
            {"$addFields": {"authorUsername": {"$arrayElemAt": ["$author.username", 0]}}},
            {"$project": {"author": 0}},
        ]
        return await self._checkins.aggregate(pipeline).to_list(length=limit)

    @translate_storage_errors
    async def count_checkins(self, day_key: str, kind: str) -> int:
        return await self._checkins.count_documents({"calendarDay": day_key, "kind": kind})

    @translate_storage_errors
    async def count_checkins_since(self, since: datetime, kind: Optional[str] = None) -> int:
        query: Dict[str, Any] = {"createdAt": {"$gte": since}}
        if kind:
            query["kind"] = kind
        return await self._checkins.count_documents(query)

    def _embed_photo_stages(self) -> List[Dict[str, Any]]:
        return [
            {"$lookup": {
                "from": collections.PHOTOS,
                "localField": "photoId",
                "foreignField": "_id",
                "as": "photo",
            }},
            {"$unwind": {"path": "$photo", "preserveNullAndEmptyArrays": True}},
        ]

    # ─────────────────────────────────────────────────────────────────
    # Daily aggregates
    # ─────────────────────────────────────────────────────────────────

    @translate_storage_errors
    async def upsert_daily_aggregate(self, day_key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the aggregate row for a day with freshly computed values."""
        return await self._aggregates.find_one_and_update(
            {"_id": day_key},
            {"$set": {**fields, "updatedAt": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    @translate_storage_errors
    async def get_daily_aggregate(self, day_key: str) -> Optional[Dict[str, Any]]:
        return await self._aggregates.find_one({"_id": day_key})

    # ─────────────────────────────────────────────────────────────────
    # Photos
    # ─────────────────────────────────────────────────────────────────

    @translate_storage_errors
    async def insert_photo(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        result = await self._photos.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    @translate_storage_errors
    async def get_photo(self, photo_id: Any) -> Optional[Dict[str, Any]]:
        oid = to_object_id(photo_id)
        if oid is None:
            return None
        return await self._photos.find_one({"_id": oid})

    @translate_storage_errors
    async def find_photo_by_blob(self, blob_id: str) -> Optional[Dict[str, Any]]:
        return await self._photos.find_one({"blobId": blob_id})

    @translate_storage_errors
    async def update_photo(self, photo_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = to_object_id(photo_id)
        if oid is None:
            return None
        return await self._photos.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    @translate_storage_errors
    async def count_photos(self, member_id: str, since: Optional[datetime] = None) -> int:
        query: Dict[str, Any] = {"memberId": member_id}
        if since is not None:
            query["createdAt"] = {"$gte": since}
        return await self._photos.count_documents(query)

    @translate_storage_errors
    async def photo_counts_by_member(self, since: Optional[datetime] = None) -> Dict[str, int]:
        """Number of photos per member, optionally only those created since a time."""
        match: Dict[str, Any] = {}
        if since is not None:
            match["createdAt"] = {"$gte": since}

        pipeline = [
            {"$match": match},
            {"$group": {"_id": "$memberId", "count": {"$sum": 1}}},
        ]
        results = await self._photos.aggregate(pipeline).to_list(length=None)
        return {r["_id"]: r["count"] for r in results}

    @translate_storage_errors
    async def delete_member_photos(self, member_id: str) -> int:
        result = await self._photos.delete_many({"memberId": member_id})
        return result.deleted_count
