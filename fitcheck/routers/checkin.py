"""
FastAPI router for check-in endpoints.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Query

from common.auth import Identity
from common.utils import success_response
from fitcheck.constants import ROLE_COACH
from fitcheck.dependencies import (
    get_aggregate_service,
    get_checkin_service,
    get_member_service,
    require_identity,
    require_member,
)
from fitcheck.pipelines import checkin as pipelines
from fitcheck.schemas.checkin import CheckInRequest, VisibilityRequest
from fitcheck.services.checkin.checkin_service import CheckInService
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.member.member_service import MemberService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkin", tags=["checkin"])


@router.post("", status_code=201)
async def submit_checkin(
    body: CheckInRequest,
    identity: Annotated[Identity, Depends(require_identity)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    member_service: Annotated[MemberService, Depends(get_member_service)],
    aggregate_service: Annotated[AggregateService, Depends(get_aggregate_service)],
):
    """
    Submit today's check-in.

    Returns the saved check-in and the updated streak.
    """
    result = await pipelines.submit_checkin_pipeline(
        checkin_service=checkin_service,
        member_service=member_service,
        aggregate_service=aggregate_service,
        identity=identity,
        kind=body.kind,
        details=body.model_dump(exclude={"kind"}),
    )
    return success_response(result)


@router.get("/today")
async def get_today_checkin(
    member: Annotated[Dict[str, Any], Depends(require_member)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
):
    """Get today's check-in status."""
    result = await pipelines.get_today_checkin_pipeline(
        checkin_service=checkin_service,
        member_id=member["_id"],
    )
    return success_response(result)


@router.get("/history")
async def get_history(
    member: Annotated[Dict[str, Any], Depends(require_member)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    limit: int = Query(30, ge=1, le=365),
    offset: int = Query(0, ge=0),
):
    """
    Get check-in history with heatmap cells.

    Most recent day first.
    """
    result = await pipelines.get_history_pipeline(
        checkin_service=checkin_service,
        member_id=member["_id"],
        limit=limit,
        offset=offset,
    )
    return success_response(result)


@router.delete("/{checkin_id}")
async def delete_checkin(
    checkin_id: str,
    member: Annotated[Dict[str, Any], Depends(require_member)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    aggregate_service: Annotated[AggregateService, Depends(get_aggregate_service)],
):
    """
    Delete a check-in.

    Owners may delete within the deletion window; coaches at any time.
    """
    result = await pipelines.delete_checkin_pipeline(
        checkin_service=checkin_service,
        aggregate_service=aggregate_service,
        checkin_id=checkin_id,
        requested_by=member["_id"],
        is_coach=member.get("role") == ROLE_COACH,
    )
    return success_response(result, message="Check-in deleted")


@router.patch("/{checkin_id}/visibility")
async def update_visibility(
    checkin_id: str,
    body: VisibilityRequest,
    member: Annotated[Dict[str, Any], Depends(require_member)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
):
    """Make a check-in's note or photo public or private."""
    checkin = await pipelines.toggle_visibility_pipeline(
        checkin_service=checkin_service,
        checkin_id=checkin_id,
        field=body.field,
        requested_by=member["_id"],
        is_public=body.isPublic,
    )
    return success_response({"checkin": checkin})
