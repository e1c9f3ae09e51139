"""Role and user domain models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class RoleType(StrEnum):
    """Capacity in which a user owns persons and routines."""

    PARENT = "PARENT"
    TEACHER = "TEACHER"


class Role(BaseModel):
    """A user's parent or teacher role; the unit that receives delegated access."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique role ID")
    user_id: str = Field(..., description="ID of the user who owns this role")
    type: RoleType = Field(..., description="PARENT or TEACHER")
    status: str = Field(default="ACTIVE", description="Role lifecycle status")


class User(BaseModel):
    """Display data for the user behind a role."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique user ID")
    name: str = Field(..., description="Display name")
    image: str | None = Field(default=None, description="Avatar URL")
