"""Co-parent and co-teacher delegation records."""

import json
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from routinely.domain.permission import CoParentPermission, CoTeacherPermission


class DelegationStatus(StrEnum):
    """Only ACTIVE delegations grant access."""

    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"


class CoParent(BaseModel):
    """Delegated access from a primary parent role to a co-parent role."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique delegation ID")
    primary_role_id: str = Field(..., description="Role granting access")
    co_parent_role_id: str = Field(..., description="Role receiving access")
    permissions: CoParentPermission | None = Field(
        ...,
        description="Granted level; None when the stored value is not recognised",
    )
    person_ids: frozenset[str] = Field(default=frozenset(), description="Persons the co-parent may act on")
    status: DelegationStatus = Field(default=DelegationStatus.ACTIVE, description="ACTIVE or REVOKED")

    @field_validator("permissions", mode="before")
    @classmethod
    def parse_permissions(cls, v: object) -> CoParentPermission | None:
        """Map unrecognised levels to None so they grant nothing."""
        return CoParentPermission.parse(v)

    @field_validator("person_ids", mode="before")
    @classmethod
    def parse_person_ids(cls, v: object) -> object:
        """Accept the JSON array the store keeps."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = json.loads(v) if v.strip() else []
        return frozenset(str(person_id) for person_id in v)  # type: ignore[union-attr]


class CoTeacher(BaseModel):
    """Delegated access to a classroom group from its teacher to a co-teacher."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique delegation ID")
    group_id: str = Field(..., description="Classroom the delegation is scoped to")
    teacher_role_id: str = Field(..., description="Role granting access")
    co_teacher_role_id: str = Field(..., description="Role receiving access")
    permissions: CoTeacherPermission | None = Field(
        ...,
        description="Granted level; None when the stored value is not recognised",
    )
    status: DelegationStatus = Field(default=DelegationStatus.ACTIVE, description="ACTIVE or REVOKED")

    @field_validator("permissions", mode="before")
    @classmethod
    def parse_permissions(cls, v: object) -> CoTeacherPermission | None:
        """Map unrecognised levels to None so they grant nothing."""
        return CoTeacherPermission.parse(v)
