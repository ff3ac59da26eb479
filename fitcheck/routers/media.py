"""
FastAPI router for media endpoints.

Photo upload and retrieval.
"""

import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse

from common.auth import Identity
from common.utils import success_response
from fitcheck.config import Settings
from fitcheck.dependencies import get_member_service, get_photo_service, get_settings, require_identity
from fitcheck.pipelines import media as pipelines
from fitcheck.services.media.photo_service import PhotoService
from fitcheck.services.member.member_service import MemberService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])


@router.post("/photos", status_code=201)
async def upload_photo(
    identity: Annotated[Identity, Depends(require_identity)],
    settings: Annotated[Settings, Depends(get_settings)],
    photo_service: Annotated[PhotoService, Depends(get_photo_service)],
    member_service: Annotated[MemberService, Depends(get_member_service)],
    file: UploadFile = File(...),
    isPublic: bool = Form(False),
):
    """
    Upload a check-in photo (JPEG or PNG).

    Returns the photo id to attach to a check-in.
    """
    # One byte past the limit is enough to reject oversize uploads
    data = await file.read(settings.PHOTO_MAX_BYTES + 1)

    photo = await pipelines.upload_photo_pipeline(
        photo_service=photo_service,
        member_service=member_service,
        identity=identity,
        data=data,
        mime_type=file.content_type,
        is_public=isPublic,
    )
    return success_response({"photo": photo})


@router.get("/photos/{blob_id}")
async def get_photo(
    blob_id: str,
    identity: Annotated[Identity, Depends(require_identity)],
    photo_service: Annotated[PhotoService, Depends(get_photo_service)],
    member_service: Annotated[MemberService, Depends(get_member_service)],
):
    """Stream photo bytes if the caller may see the photo."""
    blob = await pipelines.get_photo_content_pipeline(
        photo_service=photo_service,
        member_service=member_service,
        identity=identity,
        blob_id=blob_id,
    )
    return StreamingResponse(io.BytesIO(blob.data), media_type=blob.mime_type)
