"""
Enum definitions for the application.

These enums are used across models and provide type-safe status/priority values.
"""

from enum import Enum


class Difficulty(str, Enum):
    """Plan difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PlanStatus(str, Enum):
    """Plan lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TodoStatus(str, Enum):
    """Todo (plan step) status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class Priority(str, Enum):
    """Todo priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StepDateMode(str, Enum):
    """
    How replace/append date new steps that carry no explicit due date.

    NOW = every new step is due at the moment of the call
    CONTINUE = new steps are bucketed after the plan's existing schedule
    """

    NOW = "now"
    CONTINUE = "continue"


class MarketplaceVisibility(str, Enum):
    """Marketplace listing visibility."""

    PUBLIC = "public"
    PRIVATE = "private"


class ActivityType(str, Enum):
    """Activity log entry type."""

    PLAN_CREATED = "plan_created"
    PLAN_FORKED = "plan_forked"
    PLAN_PUBLISHED = "plan_published"
    STEPS_REPLACED = "steps_replaced"
    STEPS_APPENDED = "steps_appended"
    STEPS_SHIFTED = "steps_shifted"
    STEPS_SHIFTED_FROM_PIVOT = "steps_shifted_from_pivot"
    STEPS_RESCHEDULED = "steps_rescheduled"
