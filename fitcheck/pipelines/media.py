"""
Media pipeline functions.

Photo upload and retrieval.
"""

import logging
from typing import Any, Dict

from common.auth import Identity
from fitcheck.services.media.blob_store import StoredBlob
from fitcheck.services.media.photo_service import PhotoService, format_photo
from fitcheck.services.member.member_service import MemberService

logger = logging.getLogger(__name__)


async def upload_photo_pipeline(
    photo_service: PhotoService,
    member_service: MemberService,
    identity: Identity,
    data: bytes,
    mime_type: str,
    is_public: bool = False,
) -> Dict[str, Any]:
    """
    Store an uploaded photo for the caller.

    Args:
        photo_service: Photo records and blobs
        member_service: For member provisioning
        identity: Resolved caller identity
        data: Image bytes
        mime_type: Declared content type
        is_public: Whether the photo may appear in the public feed

    Returns:
        Formatted photo, whose id can be attached to a check-in

    Raises:
        FileTooLargeError: Image exceeds the size limit
        InvalidFileTypeError: Image is not an accepted type
    """
    member = await member_service.ensure_member(identity)
    photo = await photo_service.upload_photo(member["_id"], data, mime_type, is_public=is_public)
    return format_photo(photo)


async def get_photo_content_pipeline(
    photo_service: PhotoService,
    member_service: MemberService,
    identity: Identity,
    blob_id: str,
) -> StoredBlob:
    """
    Fetch photo bytes the caller is allowed to see.

    Raises:
        NotFoundException: Unknown photo, or private and not visible to the caller
    """
    viewer = await member_service.ensure_member(identity)
    return await photo_service.fetch_content(blob_id, viewer)
