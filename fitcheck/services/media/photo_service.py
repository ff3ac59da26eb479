"""
Photo service.

Creates photo records for uploaded images and decides who may see them.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from common.utils.exceptions import NotFoundException, ValidationException
from fitcheck.constants import ROLE_COACH
from fitcheck.services.checkin.calendar_day import normalize, utcnow
from fitcheck.services.media.blob_store import BlobStore, StoredBlob

if TYPE_CHECKING:
    from fitcheck.database.store import MongoStore
    from fitcheck.services.member.member_service import MemberService

logger = logging.getLogger(__name__)


class PhotoService:
    """
    Handles photo uploads and photo visibility.
    """

    def __init__(
        self,
        store: "MongoStore",
        blob_store: BlobStore,
        member_service: "MemberService",
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize PhotoService.

        Args:
            store: Durable store for photo records
            blob_store: Where photo bytes live
            member_service: For tracking the member's last photo day
            now: Clock returning the current instant (defaults to UTC now)
        """
        self._store = store
        self._blob_store = blob_store
        self._member_service = member_service
        self._now = now or utcnow

    async def upload_photo(
        self,
        member_id: str,
        data: bytes,
        mime_type: str,
        is_public: bool = False,
    ) -> Dict[str, Any]:
        """
        Store an uploaded photo and create its record.

        Args:
            member_id: Owning member
            data: Image bytes
            mime_type: Declared content type
            is_public: Whether the photo may appear in the public feed

        Returns:
            Photo document

        Raises:
            FileTooLargeError: Image exceeds the size limit
            InvalidFileTypeError: Image is not JPEG or PNG
        """
        now = self._now()
        ref = await self._blob_store.put(member_id, data, mime_type)

        photo = await self._store.insert_photo({
            "memberId": member_id,
            "blobId": ref.blob_id,
            "url": ref.url,
            "isPublic": is_public,
            "fileSize": ref.size,
            "mimeType": ref.mime_type,
            "createdAt": now,
        })
        await self._member_service.record_photo(member_id, normalize(now))

        logger.info(f"Photo {photo['_id']} uploaded by {member_id} (public={is_public})")
        return photo

    async def get_attachable_photo(self, photo_id: Any, member_id: str) -> Dict[str, Any]:
        """
        Get a photo that member_id may attach to a new check-in.

        The photo must exist, belong to the member and not already be linked
        to another check-in.

        Raises:
            ValidationException: Unknown, foreign or already attached photo
        """
        photo = await self._store.get_photo(photo_id)
        if not photo or photo["memberId"] != member_id:
            raise ValidationException(message="Photo not found", code="VALIDATION_ERROR")

        if await self._store.find_checkin_by_photo(photo["_id"]):
            raise ValidationException(
                message="Photo is already attached to a check-in",
                code="VALIDATION_ERROR",
            )
        return photo

    async def set_visibility(self, photo_id: Any, is_public: bool) -> Dict[str, Any]:
        """
        Set whether a photo may appear publicly.

        Raises:
            NotFoundException: Unknown photo
        """
        photo = await self._store.update_photo(photo_id, {"isPublic": is_public})
        if not photo:
            raise NotFoundException(message="Photo not found", code="PHOTO_NOT_FOUND")
        return photo

    async def fetch_content(self, blob_id: str, viewer: Dict[str, Any]) -> StoredBlob:
        """
        Return photo bytes if the viewer may see them.

        Public photos are visible to everyone; private photos only to their
        owner and to coaches.

        Raises:
            NotFoundException: Unknown blob, or private and not visible
        """
        photo = await self._store.find_photo_by_blob(blob_id)
        blob = await self._blob_store.get(blob_id) if photo else None
        if not photo or not blob:
            raise NotFoundException(message="Photo not found", code="PHOTO_NOT_FOUND")

        visible = (
            photo.get("isPublic", False)
            or photo["memberId"] == viewer["_id"]
            or viewer.get("role") == ROLE_COACH
        )
        if not visible:
            # Same answer as a missing photo so private photo ids can't be discovered
            raise NotFoundException(message="Photo not found", code="PHOTO_NOT_FOUND")

        return blob


def format_photo(photo: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Format photo document for API response."""
    if not photo:
        return None
    return {
        "id": str(photo["_id"]),
        "url": photo.get("url"),
        "isPublic": photo.get("isPublic", False),
        "fileSize": photo.get("fileSize"),
        "mimeType": photo.get("mimeType"),
    }
