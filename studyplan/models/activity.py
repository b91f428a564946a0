"""
Activity log model definitions.

Activity entries double as the idempotency ledger for shift operations.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from studyplan.models.enums import ActivityType


class ActivityLogCreate(BaseModel):
    """Schema for writing an activity entry."""

    plan_id: Optional[UUID] = None
    activity_type: ActivityType
    description: str = ""
    idempotency_key: Optional[str] = Field(None, max_length=200)
    payload: dict[str, Any] = Field(default_factory=dict)


class ActivityLog(ActivityLogCreate):
    """Stored activity entry."""

    id: UUID
    user_id: str
    created_at: datetime
