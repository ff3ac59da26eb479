"""
Domain constants shared by services, schemas and routers.
"""

# Check-in kinds
WORKOUT = "WORKOUT"
REST = "REST"
REFLECTION = "REFLECTION"

CHECKIN_KINDS = [WORKOUT, REST, REFLECTION]

# Kinds that extend a streak. Reflections count as activity but not continuity.
STREAK_MAINTAINING_KINDS = [WORKOUT, REST]

MUSCLE_GROUPS = ["PUSH", "PULL", "LEGS", "UPPER", "FULL_BODY", "CARDIO", "CUSTOM"]

# Member roles
ROLE_MEMBER = "MEMBER"
ROLE_COACH = "COACH"

MEMBER_ROLES = [ROLE_MEMBER, ROLE_COACH]

# Coach-facing engagement status
STATUS_ACTIVE = "active"
STATUS_SLIPPING = "slipping"
STATUS_GHOSTING = "ghosting"

ENGAGEMENT_STATUSES = [STATUS_ACTIVE, STATUS_SLIPPING, STATUS_GHOSTING]

# Visibility fields a member can toggle on a check-in
VISIBILITY_NOTE = "note"
VISIBILITY_PHOTO = "photo"

VISIBILITY_FIELDS = [VISIBILITY_NOTE, VISIBILITY_PHOTO]

MAX_NOTE_LENGTH = 500

# Heatmap intensity per kind
HEATMAP_VALUES = {
    WORKOUT: 1,
    REST: 2,
    REFLECTION: 0,
}
