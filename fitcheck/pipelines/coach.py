"""
Coach pipeline functions.
"""

from typing import Any, Dict

from fitcheck.services.coach.dashboard_service import DashboardService


async def get_dashboard_pipeline(dashboard_service: DashboardService) -> Dict[str, Any]:
    """
    Get the coach dashboard.

    Returns:
        dict with members list and stats
    """
    return await dashboard_service.get_dashboard()


async def get_member_detail_pipeline(
    dashboard_service: DashboardService,
    member_id: str,
) -> Dict[str, Any]:
    return await dashboard_service.get_member_detail(member_id)
