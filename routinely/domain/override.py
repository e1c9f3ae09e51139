"""Temporary visibility override domain model."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VisibilityOverride(BaseModel):
    """Forces a routine visible until `expires_at`."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique override ID")
    routine_id: str = Field(..., description="Routine forced visible")
    duration: int = Field(..., description="Requested duration in minutes")
    expires_at: datetime = Field(..., description="Absolute expiry timestamp (UTC)")

    @field_validator("expires_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Treat naive timestamps from the store as UTC."""
        return v if v.tzinfo is not None else v.replace(tzinfo=UTC)
