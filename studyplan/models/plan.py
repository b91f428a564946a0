"""
Plan model definitions.

A plan is one learning roadmap owned by exactly one user.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from studyplan.models.enums import Difficulty, PlanStatus
from studyplan.models.todo import StepInput, Todo

# Labels the assistant tends to use instead of the stored difficulty values.
DIFFICULTY_ALIASES = {
    "beginner": Difficulty.EASY,
    "intermediate": Difficulty.MEDIUM,
    "advanced": Difficulty.HARD,
}


def normalize_difficulty(value) -> Difficulty:
    """Map assistant difficulty labels onto easy/medium/hard."""
    if isinstance(value, Difficulty):
        return value
    if not value:
        return Difficulty.MEDIUM
    label = str(value).strip().lower()
    if label in DIFFICULTY_ALIASES:
        return DIFFICULTY_ALIASES[label]
    try:
        return Difficulty(label)
    except ValueError:
        return Difficulty.MEDIUM


class PlanBase(BaseModel):
    """Base plan fields shared across create/read."""

    title: str = Field(..., min_length=1, max_length=500, description="Plan title")
    description: Optional[str] = Field(None, max_length=5000)
    difficulty: Difficulty = Field(Difficulty.MEDIUM)
    estimated_duration: Optional[int] = Field(None, ge=0, description="Estimated days")
    chat_id: Optional[str] = Field(None, description="Chat the plan was generated in")


class PlanCreate(PlanBase):
    """Schema for creating a new plan."""

    status: PlanStatus = Field(PlanStatus.DRAFT)
    is_forked: bool = False
    start_date: Optional[datetime] = Field(
        None, description="Schedule anchor; defaults to the creation time"
    )

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty(cls, value):
        return normalize_difficulty(value)


class PlanUpdate(BaseModel):
    """Schema for updating an existing plan."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    difficulty: Optional[Difficulty] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    status: Optional[PlanStatus] = None


class PlanStatusUpdate(BaseModel):
    """Body of the status-only patch."""

    status: PlanStatus


class Plan(PlanBase):
    """Complete plan model with all fields."""

    id: UUID
    user_id: str = Field(..., description="Owner user ID")
    status: PlanStatus = PlanStatus.DRAFT
    is_forked: bool = False
    start_date: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PlanWithTodos(Plan):
    """Plan with its todos."""

    todos: list[Todo] = Field(default_factory=list)


class PlanWithStepsCreate(PlanBase):
    """Request body for creating a plan together with its steps."""

    start_date: Optional[datetime] = None
    steps: list[StepInput] = Field(default_factory=list)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty(cls, value):
        return normalize_difficulty(value)
