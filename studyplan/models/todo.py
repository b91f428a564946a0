"""
Todo model definitions.

A todo is one actionable step of a plan. Its ``order`` is the logical
day-slot: several todos may share an order, and they share a due date.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from studyplan.models.enums import Priority, TodoStatus


def _normalize_priority(value):
    if value is None or value == "":
        return Priority.MEDIUM
    if isinstance(value, str):
        return value.strip().lower()
    return value


class StepInput(BaseModel):
    """Step descriptor supplied by the assistant, a form, or a snapshot."""

    title: str = Field(..., min_length=1, max_length=500, description="Step title")
    description: Optional[str] = Field(None, max_length=5000)
    order: int = Field(..., description="Day-slot; equal values share a calendar day")
    priority: Priority = Field(Priority.MEDIUM)
    estimated_time: Optional[int] = Field(None, ge=0, description="Estimated minutes")
    resources: list[str] = Field(default_factory=list, description="Resource URLs")
    notes: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[datetime] = Field(
        None, description="Explicit due date; skips bucketing for this step"
    )

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return _normalize_priority(value)

    @field_validator("resources", mode="before")
    @classmethod
    def _resources(cls, value):
        return value or []

    def resolved_description(self) -> str:
        """Description with notes as fallback."""
        return self.description or self.notes or ""


class TodoCreate(BaseModel):
    """Schema for persisting a new todo (the plan is passed separately)."""

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    order: int
    priority: Priority = Field(Priority.MEDIUM)
    status: TodoStatus = Field(TodoStatus.PENDING)
    due_date: datetime
    estimated_time: Optional[int] = Field(None, ge=0)
    resources: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return _normalize_priority(value)


class TodoCreateRequest(TodoCreate):
    """Request body for creating a single todo through the API."""

    plan_id: UUID


class TodoUpdate(BaseModel):
    """Schema for updating an existing todo."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    order: Optional[int] = None
    priority: Optional[Priority] = None
    status: Optional[TodoStatus] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_time: Optional[int] = Field(None, ge=0)
    resources: Optional[list[str]] = None


class Todo(BaseModel):
    """Complete todo model with all fields."""

    id: UUID
    plan_id: UUID
    title: str
    description: Optional[str] = None
    order: int
    priority: Priority = Priority.MEDIUM
    status: TodoStatus = TodoStatus.PENDING
    due_date: datetime
    completed_at: Optional[datetime] = None
    estimated_time: Optional[int] = None
    resources: list[str] = Field(default_factory=list)
    seq: int = Field(0, description="Insertion sequence within the plan")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TodoOrderUpdate(BaseModel):
    """One entry of a bulk reorder request."""

    todo_id: UUID
    order: int


class TodoCount(BaseModel):
    """Todo counters for a plan."""

    total: int = 0
    completed: int = 0
    pending: int = 0


class TodoStatusUpdate(BaseModel):
    """Body of the status-only patch."""

    status: TodoStatus


class TodoReorderRequest(BaseModel):
    """Bulk order patch for todos of one plan."""

    plan_id: UUID
    orders: list[TodoOrderUpdate] = Field(default_factory=list)
