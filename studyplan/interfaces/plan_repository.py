"""
Plan repository interface.

Defines the contract for plan persistence operations.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

from studyplan.models.enums import PlanStatus
from studyplan.models.plan import Plan, PlanCreate, PlanUpdate
from studyplan.models.todo import TodoCreate


class IPlanRepository(ABC):
    """Abstract interface for plan persistence."""

    @abstractmethod
    async def create(
        self,
        user_id: str,
        plan: PlanCreate,
        todos: Sequence[TodoCreate] = (),
    ) -> Plan:
        """
        Create a plan, and optionally its todos, in one transaction.

        Args:
            user_id: Owner user ID
            plan: Plan creation data
            todos: Todos to insert under the new plan

        Returns:
            Created plan with generated ID and timestamps
        """
        pass

    @abstractmethod
    async def get(self, user_id: str, plan_id: UUID) -> Optional[Plan]:
        """
        Get a plan owned by the user.

        Args:
            user_id: Owner user ID
            plan_id: Plan ID

        Returns:
            Plan if found and owned by user_id, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_id(self, plan_id: UUID) -> Optional[Plan]:
        """
        Get a plan regardless of owner (for authorization checks).

        Args:
            plan_id: Plan ID

        Returns:
            Plan if found, None otherwise
        """
        pass

    @abstractmethod
    async def list(
        self,
        user_id: str,
        status: Optional[PlanStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Plan]:
        """
        List the user's plans, newest first.

        Args:
            user_id: Owner user ID
            status: Filter by status
            limit: Maximum number of results
            offset: Pagination offset

        Returns:
            List of plans matching filters
        """
        pass

    @abstractmethod
    async def list_ids(self, user_id: str, status: Optional[PlanStatus] = None) -> list[UUID]:
        """
        List the IDs of every plan the user owns, without paging.

        Args:
            user_id: Owner user ID
            status: Filter by status

        Returns:
            Plan IDs
        """
        pass

    @abstractmethod
    async def update(self, user_id: str, plan_id: UUID, update: PlanUpdate) -> Plan:
        """
        Update an existing plan.

        Args:
            user_id: Owner user ID
            plan_id: Plan ID to update
            update: Fields to update

        Returns:
            Updated plan

        Raises:
            NotFoundError: If plan not found
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, plan_id: UUID) -> bool:
        """
        Delete a plan and all of its todos.

        Args:
            user_id: Owner user ID
            plan_id: Plan ID to delete

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def count(self, user_id: str) -> int:
        """Count the user's plans."""
        pass
