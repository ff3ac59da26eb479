"""
Member pipeline functions.
"""

import logging
from typing import Any, Dict

from common.auth import Identity
from fitcheck.services.checkin.calendar_day import parse_key
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.member.member_service import MemberService, format_member

logger = logging.getLogger(__name__)


async def init_member_pipeline(
    member_service: MemberService,
    identity: Identity,
) -> Dict[str, Any]:
    """
    Provision the caller on first contact and return their profile.

    Args:
        member_service: Member registry
        identity: Resolved caller identity

    Returns:
        Formatted member profile
    """
    member = await member_service.ensure_member(identity)
    return format_member(member)


async def reset_member_data_pipeline(
    member_service: MemberService,
    aggregate_service: AggregateService,
    member_id: str,
) -> Dict[str, Any]:
    """
    Wipe a member's check-ins and photos, then refresh affected aggregates.

    Args:
        member_service: Member registry
        aggregate_service: For recomputing days that lost check-ins
        member_id: Member to reset

    Returns:
        dict with the affected day keys and the zeroed profile
    """
    affected_days = await member_service.reset_member_data(member_id)

    for day_key in affected_days:
        try:
            await aggregate_service.recompute(parse_key(day_key))
        except Exception as e:
            logger.error(f"Aggregate recompute failed for {day_key} after reset of {member_id}: {e}")

    member = await member_service.get_member(member_id)
    return {
        "affectedDays": affected_days,
        "member": format_member(member),
    }
