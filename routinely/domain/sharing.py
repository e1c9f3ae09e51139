"""Person sharing connection domain model."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from routinely.domain.permission import SharePermission


class ShareType(StrEnum):
    """What a sharing connection covers."""

    PERSON = "PERSON"
    ROUTINE_ACCESS = "ROUTINE_ACCESS"
    FULL_ROLE = "FULL_ROLE"


class SharingStatus(StrEnum):
    """Only ACTIVE connections grant access."""

    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"


class PersonSharingConnection(BaseModel):
    """Grant of access to one person from its owner role to another role."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique connection ID")
    owner_role_id: str = Field(..., description="Role that owns the shared person")
    owner_person_id: str | None = Field(default=None, description="Shared person; None once deleted")
    shared_with_role_id: str = Field(..., description="Role receiving access")
    share_type: ShareType = Field(default=ShareType.PERSON, description="What the connection covers")
    permissions: SharePermission | None = Field(
        default=SharePermission.VIEW,
        description="Granted level; None when the stored value is not recognised",
    )
    status: SharingStatus = Field(default=SharingStatus.ACTIVE, description="ACTIVE, REVOKED or EXPIRED")

    @field_validator("permissions", mode="before")
    @classmethod
    def parse_permissions(cls, v: object) -> SharePermission | None:
        """Map unrecognised levels to None so they grant nothing."""
        return SharePermission.parse(v)
