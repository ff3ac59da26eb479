"""
Standard API response helpers.

Provides the success envelope and its offset-paginated variant.

Example:
    from common.utils import success_response

    @router.get("/community/stats")
    async def get_stats():
        return success_response({"stats": stats})
"""

from typing import Any, Optional, Dict


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a standard success response.

    Args:
        data: The response data (can be dict, list, or any serializable type)
        message: Optional success message

    Returns:
        Dictionary with success=True and optional data/message
    """
    response: Dict[str, Any] = {"success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    return response


def offset_page_response(
    items: list,
    limit: int,
    offset: int,
    total: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Create an offset-paginated success response.

    When total is unknown, hasMore is inferred from a full page.

    Args:
        items: Items for the current page
        limit: Page size requested
        offset: Number of items skipped
        total: Total number of items, if counted

    Returns:
        Dictionary with success=True, items and pagination metadata
    """
    if total is None:
        has_more = len(items) == limit
    else:
        has_more = offset + len(items) < total

    pagination: Dict[str, Any] = {
        "limit": limit,
        "offset": offset,
        "hasMore": has_more,
    }
    if total is not None:
        pagination["total"] = total

    return {
        "success": True,
        "data": items,
        "pagination": pagination,
    }
