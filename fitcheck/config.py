"""
fitcheck application settings.

Extends the base settings with check-in, photo and feed policy.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """fitcheck-specific settings."""

    # ==========================================================================
    # Check-in Policy
    # ==========================================================================
    # How long an owner may delete their own check-in (coaches are exempt)
    CHECKIN_DELETION_WINDOW_MINUTES: int = 30

    # History is capped at one year (heatmap window)
    HISTORY_MAX_LIMIT: int = 365

    # ==========================================================================
    # Feed
    # ==========================================================================
    FEED_MAX_LIMIT: int = 100

    # ==========================================================================
    # Photos
    # ==========================================================================
    PHOTO_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    PHOTO_ALLOWED_TYPES: str = "image/jpeg,image/png"  # Comma-separated

    # Coach dashboard: photos per week for a member to count as compliant
    PHOTOS_PER_WEEK_REQUIRED: int = 2

    # ==========================================================================
    # Identity
    # ==========================================================================
    # Accept bare "user_..." tokens in place of JWTs (development only)
    ALLOW_PLAIN_USER_TOKENS: bool = False

    def get_photo_allowed_types(self) -> list:
        """Parse PHOTO_ALLOWED_TYPES into a list."""
        return [t.strip() for t in self.PHOTO_ALLOWED_TYPES.split(",") if t.strip()]

    def plain_tokens_enabled(self) -> bool:
        """Plain member-id tokens are never honoured outside development."""
        return self.ALLOW_PLAIN_USER_TOKENS and self.is_development()


# Global settings instance
settings = Settings()
