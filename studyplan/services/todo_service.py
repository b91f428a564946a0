"""
Todo service.

Owner-scoped todo reads and single-row writes used by the API and the
assistant tools. Bulk scheduling lives in the step mutator and date shifter.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence
from uuid import UUID

from studyplan.core.exceptions import ValidationError
from studyplan.core.logger import setup_logger
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.enums import PlanStatus, TodoStatus
from studyplan.models.todo import Todo, TodoCount, TodoCreate, TodoOrderUpdate, TodoUpdate
from studyplan.services.plan_access import authorize_plan, authorize_todo
from studyplan.utils.datetime_utils import day_bounds, now_utc

logger = setup_logger(__name__)


class TodoService:
    """Todo reads and writes scoped to the plan owner."""

    def __init__(self, plan_repo: IPlanRepository, todo_repo: ITodoRepository):
        self.plan_repo = plan_repo
        self.todo_repo = todo_repo

    async def create(self, user_id: str, plan_id: UUID, todo: TodoCreate) -> Todo:
        await authorize_plan(self.plan_repo, user_id, plan_id)
        created = await self.todo_repo.create(plan_id, todo)
        logger.info(f"Created todo {created.id} in plan {plan_id}")
        return created

    async def get(self, user_id: str, todo_id: UUID) -> Todo:
        _, todo = await authorize_todo(self.plan_repo, self.todo_repo, user_id, todo_id)
        return todo

    async def list_for_plan(
        self,
        user_id: str,
        plan_id: UUID,
        status: Optional[TodoStatus] = None,
    ) -> list[Todo]:
        await authorize_plan(self.plan_repo, user_id, plan_id)
        return await self.todo_repo.list_by_plan(plan_id, status=status)

    async def list_by_due_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        plan_id: Optional[UUID] = None,
    ) -> list[Todo]:
        """Todos due in [start, end], across all of the user's plans or one."""
        if end < start:
            raise ValidationError("end must not be before start")
        plan_ids = await self._plan_ids(user_id, plan_id)
        return await self.todo_repo.list_by_plans(plan_ids, due_from=start, due_to=end)

    async def list_for_date(
        self,
        user_id: str,
        day: date,
        plan_id: Optional[UUID] = None,
    ) -> list[Todo]:
        start, end = day_bounds(day)
        return await self.list_by_due_range(user_id, start, end, plan_id=plan_id)

    async def list_today(self, user_id: str, today: Optional[date] = None) -> list[Todo]:
        """Pending todos due today across the user's active plans."""
        start, end = day_bounds(today or now_utc().date())
        plan_ids = await self.plan_repo.list_ids(user_id, status=PlanStatus.ACTIVE)
        return await self.todo_repo.list_by_plans(
            plan_ids,
            status=TodoStatus.PENDING,
            due_from=start,
            due_to=end,
        )

    async def list_overdue(self, user_id: str, plan_id: Optional[UUID] = None) -> list[Todo]:
        """Pending todos whose due date has passed."""
        plan_ids = await self._plan_ids(user_id, plan_id)
        return await self.todo_repo.list_by_plans(
            plan_ids, status=TodoStatus.PENDING, due_to=now_utc()
        )

    async def update(self, user_id: str, todo_id: UUID, update: TodoUpdate) -> Todo:
        await authorize_todo(self.plan_repo, self.todo_repo, user_id, todo_id)
        return await self.todo_repo.update(todo_id, update)

    async def update_status(self, user_id: str, todo_id: UUID, status: TodoStatus) -> Todo:
        """Change status; completing stamps ``completed_at``."""
        await authorize_todo(self.plan_repo, self.todo_repo, user_id, todo_id)
        updated = await self.todo_repo.update(todo_id, TodoUpdate(status=status))
        logger.info(f"Todo {todo_id} -> {status.value}")
        return updated

    async def complete(self, user_id: str, todo_id: UUID) -> Todo:
        return await self.update_status(user_id, todo_id, TodoStatus.COMPLETED)

    async def reorder(
        self,
        user_id: str,
        plan_id: UUID,
        orders: Sequence[TodoOrderUpdate],
    ) -> list[Todo]:
        """Write new orders for several todos of one plan."""
        await authorize_plan(self.plan_repo, user_id, plan_id)
        await self.todo_repo.set_orders(plan_id, {item.todo_id: item.order for item in orders})
        return await self.todo_repo.list_by_plan(plan_id)

    async def delete(self, user_id: str, todo_id: UUID) -> bool:
        await authorize_todo(self.plan_repo, self.todo_repo, user_id, todo_id)
        return await self.todo_repo.delete(todo_id)

    async def delete_completed(self, user_id: str, plan_id: UUID) -> int:
        await authorize_plan(self.plan_repo, user_id, plan_id)
        deleted = await self.todo_repo.delete_by_status(plan_id, TodoStatus.COMPLETED)
        logger.info(f"Deleted {deleted} completed todos from plan {plan_id}")
        return deleted

    async def count(self, user_id: str, plan_id: UUID) -> TodoCount:
        await authorize_plan(self.plan_repo, user_id, plan_id)
        return await self.todo_repo.count(plan_id)

    async def _plan_ids(self, user_id: str, plan_id: Optional[UUID]) -> list[UUID]:
        if plan_id is not None:
            await authorize_plan(self.plan_repo, user_id, plan_id)
            return [plan_id]
        return await self.plan_repo.list_ids(user_id)
