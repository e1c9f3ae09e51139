"""Person domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from routinely.domain.permission import SharePermission


class PersonStatus(StrEnum):
    """Person lifecycle status. Archived persons are kept but not listed."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class Person(BaseModel):
    """A child or student managed by exactly one owning role."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique person ID")
    role_id: str = Field(..., description="ID of the owning role")
    name: str = Field(..., description="Display name")
    status: PersonStatus = Field(default=PersonStatus.ACTIVE, description="Lifecycle status")


class AccessiblePerson(Person):
    """A person as seen by a role, annotated with how access was obtained."""

    is_shared: bool = Field(default=False, description="True when access comes from a sharing connection")
    shared_by: str | None = Field(default=None, description="Display name of the sharing user")
    shared_by_image: str | None = Field(default=None, description="Avatar of the sharing user")
    permissions: SharePermission | None = Field(default=None, description="Level granted by the connection")
    share_type: str | None = Field(default=None, description="Connection share type")


class AccessiblePersons(BaseModel):
    """Owned and shared persons visible to a role."""

    model_config = ConfigDict(frozen=True)

    owned_persons: list[AccessiblePerson]
    shared_persons: list[AccessiblePerson]

    @computed_field
    @property
    def all_persons(self) -> list[AccessiblePerson]:
        """Owned persons followed by shared persons."""
        return [*self.owned_persons, *self.shared_persons]

    def restricted_to(self, person_ids: frozenset[str]) -> "AccessiblePersons":
        """Keep only the persons whose ids are in `person_ids`."""
        return AccessiblePersons(
            owned_persons=[p for p in self.owned_persons if p.id in person_ids],
            shared_persons=[p for p in self.shared_persons if p.id in person_ids],
        )
