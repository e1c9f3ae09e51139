"""Domain models and enums."""

from routinely.domain.completion import TaskCompletion
from routinely.domain.delegation import CoParent, CoTeacher, DelegationStatus
from routinely.domain.override import VisibilityOverride
from routinely.domain.permission import CoParentPermission, CoTeacherPermission, RankedPermission, SharePermission
from routinely.domain.person import AccessiblePerson, AccessiblePersons, Person, PersonStatus
from routinely.domain.role import Role, RoleType, User
from routinely.domain.routine import (
    Condition,
    ConditionOperator,
    Group,
    Routine,
    RoutineStatus,
    RoutineType,
    Task,
    Visibility,
)
from routinely.domain.sharing import PersonSharingConnection, SharingStatus, ShareType


__all__ = [
    "AccessiblePerson",
    "AccessiblePersons",
    "CoParent",
    "CoParentPermission",
    "CoTeacher",
    "CoTeacherPermission",
    "Condition",
    "ConditionOperator",
    "DelegationStatus",
    "Group",
    "Person",
    "PersonSharingConnection",
    "PersonStatus",
    "RankedPermission",
    "Role",
    "RoleType",
    "Routine",
    "RoutineStatus",
    "RoutineType",
    "SharePermission",
    "ShareType",
    "SharingStatus",
    "Task",
    "TaskCompletion",
    "User",
    "Visibility",
    "VisibilityOverride",
]
