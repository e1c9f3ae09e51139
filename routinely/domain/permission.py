"""Ordered permission levels for delegation and sharing grants."""

from enum import StrEnum
from typing import Self


class RankedPermission(StrEnum):
    """Permission enum whose declaration order is its rank (lowest first)."""

    @property
    def rank(self) -> int:
        """Numeric rank, 1 for the lowest level."""
        return list(type(self)).index(self) + 1

    def satisfies(self, required: Self) -> bool:
        """Return True if this level implies every capability of `required`."""
        return self.rank >= required.rank

    @classmethod
    def parse(cls, value: object) -> Self | None:
        """Return the matching level, or None for unrecognised stored values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


class CoParentPermission(RankedPermission):
    """What a co-parent may do for the persons on their allow-list."""

    READ_ONLY = "READ_ONLY"
    TASK_COMPLETION = "TASK_COMPLETION"
    FULL_EDIT = "FULL_EDIT"


class CoTeacherPermission(RankedPermission):
    """What a co-teacher may do inside a shared classroom."""

    VIEW = "VIEW"
    EDIT_TASKS = "EDIT_TASKS"
    FULL_EDIT = "FULL_EDIT"


class SharePermission(RankedPermission):
    """Access level granted by a person sharing connection."""

    VIEW = "VIEW"
    EDIT = "EDIT"
    MANAGE = "MANAGE"
