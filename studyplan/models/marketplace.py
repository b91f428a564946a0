"""
Marketplace model definitions.

A marketplace plan carries an immutable snapshot of a plan's content at
publish time. Snapshot steps have no due dates; they are bucketed again
whenever someone forks the listing.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from studyplan.models.enums import Difficulty, MarketplaceVisibility, Priority


class SnapshotStep(BaseModel):
    """Step descriptor stored inside a snapshot."""

    title: str
    description: Optional[str] = None
    order: int
    priority: Priority = Priority.MEDIUM
    estimated_time: Optional[int] = None
    resources: list[str] = Field(default_factory=list)


class MarketplaceSnapshot(BaseModel):
    """Immutable copy of a plan at publish time."""

    title: str
    description: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    estimated_duration: Optional[int] = None
    todos: list[SnapshotStep] = Field(default_factory=list)


class PublishRequest(BaseModel):
    """Request body for publishing a plan."""

    source_plan_id: UUID
    visibility: Optional[MarketplaceVisibility] = None
    tags: Optional[list[str]] = None
    price: Optional[float] = Field(None, ge=0)
    is_free: Optional[bool] = None


class MarketplacePlan(BaseModel):
    """Published plan listing."""

    id: UUID
    source_plan_id: UUID
    author_id: str
    snapshot: MarketplaceSnapshot
    visibility: MarketplaceVisibility = MarketplaceVisibility.PUBLIC
    tags: list[str] = Field(default_factory=list)
    price: Optional[float] = None
    is_free: bool = True
    installs: int = 0
    version: int = 1
    created_at: datetime
    updated_at: datetime


class Purchase(BaseModel):
    """Recorded purchase of a paid marketplace plan."""

    id: UUID
    user_id: str
    marketplace_plan_id: UUID
    price: float = 0
    purchased_at: datetime


class PlanFork(BaseModel):
    """Attribution record linking a fork to its origin plan."""

    id: UUID
    user_id: str
    original_plan_id: UUID
    forked_plan_id: UUID
    created_at: datetime
