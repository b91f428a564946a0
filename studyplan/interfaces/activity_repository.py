"""
Activity log repository interface.

Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from studyplan.models.activity import ActivityLog, ActivityLogCreate


class IActivityRepository(ABC):
    """Abstract interface for the activity log."""

    @abstractmethod
    async def create(self, user_id: str, entry: ActivityLogCreate) -> ActivityLog:
        """
        Append an activity entry.

        Args:
            user_id: Acting user
            entry: Entry data

        Returns:
            Stored entry

        Raises:
            BusinessLogicError: If the idempotency key was already used by the user
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, user_id: str, key: str) -> Optional[ActivityLog]:
        """Find the entry recorded under an idempotency key."""
        pass

    @abstractmethod
    async def list(
        self,
        user_id: str,
        plan_id: Optional[UUID] = None,
        limit: int = 50,
    ) -> list[ActivityLog]:
        """List the user's entries, newest first."""
        pass
