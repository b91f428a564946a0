"""
Request models for step mutation and date shifting.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from studyplan.models.enums import StepDateMode
from studyplan.models.todo import StepInput


class StepsRequest(BaseModel):
    """Replace or append a batch of steps."""

    steps: list[StepInput] = Field(default_factory=list)
    date_mode: Optional[StepDateMode] = Field(
        None, description="Dating rule for steps without due_date (default from settings)"
    )


class ShiftDaysRequest(BaseModel):
    """Translate due dates of one plan's todos by a number of days."""

    days: int = Field(..., description="Signed day delta")
    pending_only: bool = True
    idempotency_key: Optional[str] = Field(None, max_length=200)


class ShiftPendingRequest(BaseModel):
    """Translate due dates of the user's pending todos, optionally in one plan."""

    days: int
    plan_id: Optional[UUID] = None
    idempotency_key: Optional[str] = Field(None, max_length=200)


class ShiftFromPivotRequest(BaseModel):
    """Add shift_by to the order of the pivot todo and every todo after it."""

    todo_id: UUID
    shift_by: int
    idempotency_key: Optional[str] = Field(None, max_length=200)


class RescheduleRequest(BaseModel):
    """Re-run day bucketing over a plan's pending todos."""

    start_date: Optional[datetime] = None
