"""Pydantic models (schemas) for the application."""

from studyplan.models.enums import (
    ActivityType,
    Difficulty,
    MarketplaceVisibility,
    PlanStatus,
    Priority,
    StepDateMode,
    TodoStatus,
)
from studyplan.models.plan import Plan, PlanCreate, PlanUpdate, PlanWithTodos
from studyplan.models.todo import StepInput, Todo, TodoCreate, TodoUpdate
from studyplan.models.marketplace import MarketplacePlan, MarketplaceSnapshot, SnapshotStep

__all__ = [
    # Enums
    "ActivityType",
    "Difficulty",
    "MarketplaceVisibility",
    "PlanStatus",
    "Priority",
    "StepDateMode",
    "TodoStatus",
    # Plan
    "Plan",
    "PlanCreate",
    "PlanUpdate",
    "PlanWithTodos",
    # Todo
    "StepInput",
    "Todo",
    "TodoCreate",
    "TodoUpdate",
    # Marketplace
    "MarketplacePlan",
    "MarketplaceSnapshot",
    "SnapshotStep",
]
