"""Task completion domain model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TaskCompletion(BaseModel):
    """A record of a person completing a task."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique completion ID")
    task_id: str = Field(..., description="Completed task")
    person_id: str = Field(..., description="Person who completed the task")
    completed_at: datetime = Field(..., description="Completion timestamp")
    value: str | None = Field(default=None, description="Recorded value for measured tasks")
