"""
Photo blob storage.

BlobStore is the capability the rest of the system uses to persist photo
bytes: given content and an owner it returns a URL and a size/type
descriptor. MongoBlobStore keeps the bytes in a collection and serves them
back through the media router.

Uploads are validated before anything is written:
    - size must not exceed the configured maximum (default 10MB)
    - content type must be in the allowed set (default JPEG, PNG)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from bson import Binary
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import ValidationException
from fitcheck.database import collections
from fitcheck.database.store import to_object_id, translate_storage_errors
from fitcheck.errors import FileTooLargeError, InvalidFileTypeError
from fitcheck.services.checkin.calendar_day import utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_TYPES = ["image/jpeg", "image/png"]


@dataclass(frozen=True)
class BlobRef:
    """Where a stored blob can be fetched, and what it is."""

    blob_id: str
    url: str
    size: int
    mime_type: str


@dataclass(frozen=True)
class StoredBlob:
    """Blob content with its descriptors."""

    blob_id: str
    owner_id: str
    data: bytes
    mime_type: str


def validate_upload(
    data: bytes,
    mime_type: Optional[str],
    max_bytes: int = DEFAULT_MAX_BYTES,
    allowed_types: Optional[List[str]] = None,
) -> None:
    """
    Check an upload against the size and type policy.

    Raises:
        ValidationException: Empty upload
        FileTooLargeError: Content exceeds max_bytes
        InvalidFileTypeError: Content type not allowed
    """
    allowed = allowed_types or DEFAULT_ALLOWED_TYPES

    if not data:
        raise ValidationException(message="No file data provided", code="EMPTY_FILE")

    if len(data) > max_bytes:
        raise FileTooLargeError(max_bytes)

    if mime_type not in allowed:
        raise InvalidFileTypeError(allowed)


class BlobStore(ABC):
    """Abstract photo blob storage."""

    @abstractmethod
    async def put(self, owner_id: str, data: bytes, mime_type: str) -> BlobRef:
        """Validate and store content, returning its reference."""
        pass

    @abstractmethod
    async def get(self, blob_id: str) -> Optional[StoredBlob]:
        """Fetch stored content, or None if unknown."""
        pass

    @abstractmethod
    async def delete_for_owner(self, owner_id: str) -> int:
        """Delete every blob owned by owner_id, returning the count."""
        pass


class MongoBlobStore(BlobStore):
    """
    Stores photo bytes in MongoDB.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        max_bytes: int = DEFAULT_MAX_BYTES,
        allowed_types: Optional[List[str]] = None,
        url_prefix: str = "/api/v1/media/photos",
    ):
        """
        Initialize MongoBlobStore.

        Args:
            db: MongoDB database connection
            max_bytes: Maximum accepted upload size
            allowed_types: Accepted MIME types
            url_prefix: Public path the media router serves blobs under
        """
        self._blobs_collection = db[collections.PHOTO_BLOBS]
        self._max_bytes = max_bytes
        self._allowed_types = allowed_types or DEFAULT_ALLOWED_TYPES
        self._url_prefix = url_prefix.rstrip("/")

    @translate_storage_errors
    async def put(self, owner_id: str, data: bytes, mime_type: str) -> BlobRef:
        validate_upload(data, mime_type, self._max_bytes, self._allowed_types)

        result = await self._blobs_collection.insert_one({
            "ownerId": owner_id,
            "data": Binary(data),
            "mimeType": mime_type,
            "size": len(data),
            "createdAt": utcnow(),
        })
        blob_id = str(result.inserted_id)

        logger.info(f"Stored photo blob {blob_id} ({len(data)} bytes) for {owner_id}")
        return BlobRef(
            blob_id=blob_id,
            url=f"{self._url_prefix}/{blob_id}",
            size=len(data),
            mime_type=mime_type,
        )

    @translate_storage_errors
    async def get(self, blob_id: str) -> Optional[StoredBlob]:
        oid = to_object_id(blob_id)
        if oid is None:
            return None

        doc = await self._blobs_collection.find_one({"_id": oid})
        if not doc:
            return None

        return StoredBlob(
            blob_id=str(doc["_id"]),
            owner_id=doc["ownerId"],
            data=bytes(doc["data"]),
            mime_type=doc["mimeType"],
        )

    @translate_storage_errors
    async def delete_for_owner(self, owner_id: str) -> int:
        result = await self._blobs_collection.delete_many({"ownerId": owner_id})
        return result.deleted_count
