"""Request models for the fitcheck API."""

from fitcheck.schemas.checkin import CheckInRequest, VisibilityRequest

__all__ = ["CheckInRequest", "VisibilityRequest"]
