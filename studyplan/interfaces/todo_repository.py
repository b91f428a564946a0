"""
Todo repository interface.

Defines the contract for todo (plan step) persistence operations.
Implementations: SQLite

Todos are addressed by plan; ownership is checked by the services before
any of these methods run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Mapping, Optional, Sequence
from uuid import UUID

from studyplan.models.enums import TodoStatus
from studyplan.models.todo import Todo, TodoCount, TodoCreate, TodoUpdate


class ITodoRepository(ABC):
    """Abstract interface for todo persistence."""

    @abstractmethod
    async def create(self, plan_id: UUID, todo: TodoCreate) -> Todo:
        """
        Create a single todo.

        Args:
            plan_id: Owning plan ID
            todo: Todo creation data

        Returns:
            Created todo
        """
        pass

    @abstractmethod
    async def create_many(self, plan_id: UUID, todos: Sequence[TodoCreate]) -> list[Todo]:
        """
        Insert several todos in one transaction, preserving their sequence.

        Args:
            plan_id: Owning plan ID
            todos: Todo creation data, in insertion order

        Returns:
            Created todos in insertion order
        """
        pass

    @abstractmethod
    async def get(self, todo_id: UUID) -> Optional[Todo]:
        """
        Get a todo by ID.

        Args:
            todo_id: Todo ID

        Returns:
            Todo if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_plan(
        self,
        plan_id: UUID,
        status: Optional[TodoStatus] = None,
    ) -> list[Todo]:
        """
        List a plan's todos ascending by (order, insertion sequence).

        Args:
            plan_id: Plan ID
            status: Filter by status

        Returns:
            Ordered todos
        """
        pass

    @abstractmethod
    async def list_by_plans(
        self,
        plan_ids: Sequence[UUID],
        status: Optional[TodoStatus] = None,
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
    ) -> list[Todo]:
        """
        List todos across several plans, ascending by due date.

        Args:
            plan_ids: Plan IDs
            status: Filter by status
            due_from: Inclusive lower bound on due date
            due_to: Inclusive upper bound on due date

        Returns:
            Matching todos
        """
        pass

    @abstractmethod
    async def update(self, todo_id: UUID, update: TodoUpdate) -> Todo:
        """
        Update an existing todo.

        Raises:
            NotFoundError: If todo not found
        """
        pass

    @abstractmethod
    async def delete(self, todo_id: UUID) -> bool:
        """Delete a todo. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def delete_by_status(self, plan_id: UUID, status: TodoStatus) -> int:
        """Delete a plan's todos with the given status. Returns the count."""
        pass

    @abstractmethod
    async def replace_pending(self, plan_id: UUID, todos: Sequence[TodoCreate]) -> list[Todo]:
        """
        Delete every pending todo of the plan and insert ``todos``, atomically.

        Non-pending todos are left untouched.

        Returns:
            Newly inserted todos
        """
        pass

    @abstractmethod
    async def shift_due_dates(
        self,
        plan_ids: Sequence[UUID],
        days: int,
        status: Optional[TodoStatus] = None,
    ) -> list[Todo]:
        """
        Translate due dates by ``days`` for todos in the given plans.

        Args:
            plan_ids: Plan IDs
            days: Signed day delta
            status: Only shift todos with this status

        Returns:
            Shifted todos
        """
        pass

    @abstractmethod
    async def set_orders(self, plan_id: UUID, orders: Mapping[UUID, int]) -> list[Todo]:
        """
        Overwrite the order of several todos of one plan.

        Raises:
            NotFoundError: If a todo does not belong to the plan
        """
        pass

    @abstractmethod
    async def set_due_dates(self, plan_id: UUID, due_dates: Mapping[UUID, datetime]) -> list[Todo]:
        """
        Overwrite the due date of several todos of one plan.

        Raises:
            NotFoundError: If a todo does not belong to the plan
        """
        pass

    @abstractmethod
    async def count(self, plan_id: UUID) -> TodoCount:
        """Count total/completed/pending todos of a plan."""
        pass
