"""
Pydantic models for check-in request validation.

Enumerated values (kind, muscleGroup, field) are checked by the ledger so the
error codes match the rest of the API.
"""

from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class CheckInRequest(BaseModel):
    """POST /api/v1/checkin"""
    kind: str = Field(..., description="WORKOUT, REST or REFLECTION")
    muscleGroup: Optional[str] = Field(None, description="Required for WORKOUT")
    note: Optional[str] = None
    isNotePublic: bool = False
    photoId: Optional[str] = Field(None, description="Id returned by POST /media/photos")


class VisibilityRequest(BaseModel):
    """PATCH /api/v1/checkin/{id}/visibility"""
    field: str = Field(..., description="note or photo")
    isPublic: bool
