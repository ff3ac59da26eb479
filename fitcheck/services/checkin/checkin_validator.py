"""
Check-in validation.

Validates check-in kind and details before anything is written.
"""

from typing import Any, Dict, Optional, Tuple

from fitcheck.constants import (
    CHECKIN_KINDS,
    MAX_NOTE_LENGTH,
    MUSCLE_GROUPS,
    VISIBILITY_FIELDS,
    WORKOUT,
)


class CheckInValidator:
    """
    Validates check-in kind, details and visibility fields.
    """

    @classmethod
    def validate_kind(cls, kind: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate the check-in kind.

        Returns:
            tuple of (is_valid, error_message)
        """
        if kind not in CHECKIN_KINDS:
            return False, f"Invalid check-in type. Must be one of: {', '.join(CHECKIN_KINDS)}"
        return True, None

    @classmethod
    def validate_details(cls, kind: str, details: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        """
        Validate the kind-specific details.

        Args:
            kind: Already validated check-in kind
            details: muscleGroup, note, isNotePublic, photoId

        Returns:
            tuple of (is_valid, error_message)

        Rules:
            - WORKOUT requires a muscleGroup
            - a supplied muscleGroup must be known
            - note at most 500 characters after trimming
        """
        muscle_group = details.get("muscleGroup")

        if kind == WORKOUT and not muscle_group:
            return False, "Muscle group is required for workouts"

        if muscle_group is not None and muscle_group not in MUSCLE_GROUPS:
            return False, f"Invalid muscle group. Must be one of: {', '.join(MUSCLE_GROUPS)}"

        return cls.validate_note(details.get("note"))

    @classmethod
    def validate_note(cls, note: Optional[str]) -> Tuple[bool, Optional[str]]:
        if note is None:
            return True, None

        if not isinstance(note, str):
            return False, "Note must be a string"

        if len(note.strip()) > MAX_NOTE_LENGTH:
            return False, f"Note cannot exceed {MAX_NOTE_LENGTH} characters"

        return True, None

    @classmethod
    def validate_visibility_field(cls, field: Any) -> Tuple[bool, Optional[str]]:
        if field not in VISIBILITY_FIELDS:
            return False, f"Invalid field. Must be one of: {', '.join(VISIBILITY_FIELDS)}"
        return True, None
