"""Routine, task, group and condition domain models."""

import json
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


DAYS_IN_WEEK = 7


class Visibility(StrEnum):
    """How a routine decides whether it is shown today."""

    ALWAYS = "ALWAYS"
    DAYS_OF_WEEK = "DAYS_OF_WEEK"
    DATE_RANGE = "DATE_RANGE"
    CONDITIONAL = "CONDITIONAL"


class RoutineType(StrEnum):
    """Regular routines are static; smart routines carry conditions."""

    REGULAR = "REGULAR"
    SMART = "SMART"


class RoutineStatus(StrEnum):
    """Routine lifecycle status."""

    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class ConditionOperator(StrEnum):
    """Comparison a smart routine condition applies to its target."""

    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_NOT_COMPLETED = "TASK_NOT_COMPLETED"
    TASK_COUNT_EQUALS = "TASK_COUNT_EQUALS"
    TASK_COUNT_GT = "TASK_COUNT_GT"
    TASK_COUNT_LT = "TASK_COUNT_LT"
    TASK_VALUE_EQUALS = "TASK_VALUE_EQUALS"
    TASK_VALUE_GT = "TASK_VALUE_GT"
    TASK_VALUE_LT = "TASK_VALUE_LT"
    ROUTINE_PERCENT_EQUALS = "ROUTINE_PERCENT_EQUALS"
    ROUTINE_PERCENT_GT = "ROUTINE_PERCENT_GT"
    ROUTINE_PERCENT_LT = "ROUTINE_PERCENT_LT"
    GOAL_ACHIEVED = "GOAL_ACHIEVED"
    GOAL_NOT_ACHIEVED = "GOAL_NOT_ACHIEVED"


class Group(BaseModel):
    """A classroom owned by a teacher role."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique group ID")
    role_id: str = Field(..., description="ID of the owning teacher role")
    name: str = Field(..., description="Classroom name")


class Routine(BaseModel):
    """A named, ownable collection of tasks with a visibility rule."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique routine ID")
    role_id: str = Field(..., description="ID of the owning role")
    group_id: str | None = Field(default=None, description="Classroom the routine belongs to, if any")
    name: str = Field(..., description="Routine name")
    type: RoutineType = Field(default=RoutineType.REGULAR, description="REGULAR or SMART")
    status: RoutineStatus = Field(default=RoutineStatus.ACTIVE, description="Lifecycle status")
    visibility: Visibility = Field(default=Visibility.ALWAYS, description="Visibility mode")
    visible_days: frozenset[int] = Field(
        default=frozenset(),
        description="Weekday numbers (0=Sunday..6=Saturday) for DAYS_OF_WEEK visibility",
    )
    start_date: date | None = Field(default=None, description="Range start; only month and day are used")
    end_date: date | None = Field(default=None, description="Range end; only month and day are used")
    is_teacher_only: bool = Field(default=False, description="Hidden from students")
    is_protected: bool = Field(default=False, description="Cannot be removed by delegates")

    @field_validator("visible_days", mode="before")
    @classmethod
    def parse_visible_days(cls, v: object) -> object:
        """Accept the JSON array the store keeps, and reject out-of-range weekdays."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = json.loads(v) if v.strip() else []
        days = frozenset(int(day) for day in v)  # type: ignore[union-attr]
        if any(day < 0 or day >= DAYS_IN_WEEK for day in days):
            raise ValueError("visible_days must contain weekday numbers 0-6")
        return days

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_date(cls, v: object) -> object:
        """Accept full ISO timestamps as well as plain dates."""
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v or None


class Task(BaseModel):
    """A single task inside a routine."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique task ID")
    routine_id: str = Field(..., description="ID of the routine that owns the task")
    name: str = Field(..., description="Task name")
    status: str = Field(default="ACTIVE", description="Lifecycle status")


class Condition(BaseModel):
    """Dependency edge from a smart routine to a target task or routine."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique condition ID")
    routine_id: str = Field(..., description="ID of the smart routine that owns the condition")
    operator: ConditionOperator = Field(..., description="Comparison applied to the target")
    value: str | None = Field(default=None, description="Comparison operand, if the operator takes one")
    target_task_id: str | None = Field(default=None, description="Targeted task ID")
    target_routine_id: str | None = Field(default=None, description="Targeted routine ID")
