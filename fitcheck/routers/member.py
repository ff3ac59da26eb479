"""
FastAPI router for member endpoints.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends

from common.auth import Identity
from common.utils import ForbiddenException, success_response
from fitcheck.config import Settings
from fitcheck.dependencies import (
    get_aggregate_service,
    get_member_service,
    get_settings,
    require_identity,
    require_member,
)
from fitcheck.pipelines import member as pipelines
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.member.member_service import MemberService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/member", tags=["member"])


@router.post("/init")
async def init_member(
    identity: Annotated[Identity, Depends(require_identity)],
    member_service: Annotated[MemberService, Depends(get_member_service)],
):
    """
    Provision the caller on first contact.

    Returns the member profile with streak fields.
    """
    profile = await pipelines.init_member_pipeline(member_service=member_service, identity=identity)
    return success_response({"member": profile})


@router.delete("/data")
async def reset_member_data(
    member: Annotated[Dict[str, Any], Depends(require_member)],
    settings: Annotated[Settings, Depends(get_settings)],
    member_service: Annotated[MemberService, Depends(get_member_service)],
    aggregate_service: Annotated[AggregateService, Depends(get_aggregate_service)],
):
    """
    Delete all of the caller's check-ins and photos and reset their streak.

    Development only.
    """
    if not settings.is_development():
        raise ForbiddenException(
            message="Data reset is only available in development",
            code="DEVELOPMENT_ONLY",
        )

    result = await pipelines.reset_member_data_pipeline(
        member_service=member_service,
        aggregate_service=aggregate_service,
        member_id=member["_id"],
    )
    logger.warning(f"Member data reset for {member['_id']}")
    return success_response(result, message="Member data reset")
