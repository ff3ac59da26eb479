"""
FastAPI router for coach endpoints.

All endpoints require the COACH role.
"""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends

from common.utils import success_response
from fitcheck.dependencies import get_dashboard_service, require_coach
from fitcheck.pipelines import coach as pipelines
from fitcheck.services.coach.dashboard_service import DashboardService

router = APIRouter(prefix="/coach", tags=["coach"])


@router.get("/dashboard")
async def get_dashboard(
    coach: Annotated[Dict[str, Any], Depends(require_coach)],
    dashboard_service: Annotated[DashboardService, Depends(get_dashboard_service)],
):
    """
    Get the coach dashboard.

    Members with engagement status, weekly stats and photo compliance.
    """
    dashboard = await pipelines.get_dashboard_pipeline(dashboard_service=dashboard_service)
    return success_response(dashboard)


@router.get("/members/{member_id}")
async def get_member_detail(
    member_id: str,
    coach: Annotated[Dict[str, Any], Depends(require_coach)],
    dashboard_service: Annotated[DashboardService, Depends(get_dashboard_service)],
):
    """Get one member's stats and recent check-ins."""
    detail = await pipelines.get_member_detail_pipeline(
        dashboard_service=dashboard_service,
        member_id=member_id,
    )
    return success_response({"member": detail})
