"""
SQLite implementation of Todo repository.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Mapping, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan.core.exceptions import NotFoundError
from studyplan.infrastructure.local.database import TodoORM, get_session_factory
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.enums import Priority, TodoStatus
from studyplan.models.todo import Todo, TodoCount, TodoCreate, TodoUpdate
from studyplan.utils.datetime_utils import ensure_utc, to_naive_utc


def todo_to_orm(plan_id: str, todo: TodoCreate, seq: int) -> TodoORM:
    """Build an ORM row for a new todo (shared with the plan repository)."""
    now = datetime.utcnow()
    return TodoORM(
        id=str(uuid4()),
        plan_id=plan_id,
        title=todo.title,
        description=todo.description,
        order=todo.order,
        seq=seq,
        priority=todo.priority.value,
        status=todo.status.value,
        due_date=to_naive_utc(todo.due_date),
        completed_at=now if todo.status == TodoStatus.COMPLETED else None,
        estimated_time=todo.estimated_time,
        resources=list(todo.resources),
        created_at=now,
        updated_at=now,
    )


def orm_to_todo(orm: TodoORM) -> Todo:
    """Convert ORM object to Pydantic model."""
    return Todo(
        id=UUID(orm.id),
        plan_id=UUID(orm.plan_id),
        title=orm.title,
        description=orm.description,
        order=orm.order,
        priority=Priority(orm.priority or Priority.MEDIUM.value),
        status=TodoStatus(orm.status or TodoStatus.PENDING.value),
        due_date=ensure_utc(orm.due_date),
        completed_at=ensure_utc(orm.completed_at),
        estimated_time=orm.estimated_time,
        resources=orm.resources or [],
        seq=orm.seq or 0,
        created_at=ensure_utc(orm.created_at),
        updated_at=ensure_utc(orm.updated_at),
    )


async def next_seq(session: AsyncSession, plan_id: str) -> int:
    """Next insertion sequence for a plan."""
    result = await session.execute(
        select(func.max(TodoORM.seq)).where(TodoORM.plan_id == plan_id)
    )
    current = result.scalar_one_or_none()
    return (current or 0) + 1


class SqliteTodoRepository(ITodoRepository):
    """SQLite implementation of todo repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    async def create(self, plan_id: UUID, todo: TodoCreate) -> Todo:
        """Create a new todo."""
        todos = await self.create_many(plan_id, [todo])
        return todos[0]

    async def create_many(self, plan_id: UUID, todos: Sequence[TodoCreate]) -> list[Todo]:
        """Insert todos in one transaction."""
        if not todos:
            return []
        async with self._session_factory() as session:
            seq = await next_seq(session, str(plan_id))
            orms = [todo_to_orm(str(plan_id), todo, seq + i) for i, todo in enumerate(todos)]
            session.add_all(orms)
            await session.commit()
            return [orm_to_todo(orm) for orm in orms]

    async def get(self, todo_id: UUID) -> Optional[Todo]:
        """Get a todo by ID."""
        async with self._session_factory() as session:
            result = await session.execute(select(TodoORM).where(TodoORM.id == str(todo_id)))
            orm = result.scalar_one_or_none()
            return orm_to_todo(orm) if orm else None

    async def list_by_plan(
        self,
        plan_id: UUID,
        status: Optional[TodoStatus] = None,
    ) -> list[Todo]:
        """List a plan's todos ordered by (order, seq)."""
        async with self._session_factory() as session:
            query = select(TodoORM).where(TodoORM.plan_id == str(plan_id))
            if status is not None:
                query = query.where(TodoORM.status == status.value)
            query = query.order_by(TodoORM.order.asc(), TodoORM.seq.asc())
            result = await session.execute(query)
            return [orm_to_todo(orm) for orm in result.scalars().all()]

    async def list_by_plans(
        self,
        plan_ids: Sequence[UUID],
        status: Optional[TodoStatus] = None,
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
    ) -> list[Todo]:
        """List todos across plans ordered by due date."""
        if not plan_ids:
            return []
        async with self._session_factory() as session:
            query = select(TodoORM).where(TodoORM.plan_id.in_([str(pid) for pid in plan_ids]))
            if status is not None:
                query = query.where(TodoORM.status == status.value)
            if due_from is not None:
                query = query.where(TodoORM.due_date >= to_naive_utc(due_from))
            if due_to is not None:
                query = query.where(TodoORM.due_date <= to_naive_utc(due_to))
            query = query.order_by(TodoORM.due_date.asc(), TodoORM.order.asc(), TodoORM.seq.asc())
            result = await session.execute(query)
            return [orm_to_todo(orm) for orm in result.scalars().all()]

    async def update(self, todo_id: UUID, update: TodoUpdate) -> Todo:
        """Update an existing todo."""
        async with self._session_factory() as session:
            result = await session.execute(select(TodoORM).where(TodoORM.id == str(todo_id)))
            orm = result.scalar_one_or_none()

            if not orm:
                raise NotFoundError("Todo not found")

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is None and field != "completed_at":
                    continue
                if field in ("due_date", "completed_at"):
                    value = to_naive_utc(value)
                elif hasattr(value, "value"):  # Enum
                    value = value.value
                setattr(orm, field, value)

            if "status" in update_data and "completed_at" not in update_data:
                if update.status == TodoStatus.COMPLETED:
                    orm.completed_at = datetime.utcnow()
                elif update.status is not None:
                    orm.completed_at = None

            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return orm_to_todo(orm)

    async def delete(self, todo_id: UUID) -> bool:
        """Delete a todo."""
        async with self._session_factory() as session:
            result = await session.execute(select(TodoORM).where(TodoORM.id == str(todo_id)))
            orm = result.scalar_one_or_none()

            if not orm:
                return False

            await session.delete(orm)
            await session.commit()
            return True

    async def delete_by_status(self, plan_id: UUID, status: TodoStatus) -> int:
        """Delete a plan's todos with the given status."""
        async with self._session_factory() as session:
            result = await session.execute(
                delete(TodoORM).where(
                    and_(TodoORM.plan_id == str(plan_id), TodoORM.status == status.value)
                )
            )
            await session.commit()
            return result.rowcount or 0

    async def replace_pending(self, plan_id: UUID, todos: Sequence[TodoCreate]) -> list[Todo]:
        """Swap the plan's pending todos for new ones in one transaction."""
        async with self._session_factory() as session:
            await session.execute(
                delete(TodoORM).where(
                    and_(
                        TodoORM.plan_id == str(plan_id),
                        TodoORM.status == TodoStatus.PENDING.value,
                    )
                )
            )
            seq = await next_seq(session, str(plan_id))
            orms = [todo_to_orm(str(plan_id), todo, seq + i) for i, todo in enumerate(todos)]
            session.add_all(orms)
            await session.commit()
            return [orm_to_todo(orm) for orm in orms]

    async def shift_due_dates(
        self,
        plan_ids: Sequence[UUID],
        days: int,
        status: Optional[TodoStatus] = None,
    ) -> list[Todo]:
        """Translate due dates by a number of days."""
        if not plan_ids:
            return []
        async with self._session_factory() as session:
            query = select(TodoORM).where(TodoORM.plan_id.in_([str(pid) for pid in plan_ids]))
            if status is not None:
                query = query.where(TodoORM.status == status.value)
            result = await session.execute(query.order_by(TodoORM.order.asc(), TodoORM.seq.asc()))
            orms = list(result.scalars().all())

            now = datetime.utcnow()
            for orm in orms:
                orm.due_date = orm.due_date + timedelta(days=days)
                orm.updated_at = now
            await session.commit()
            return [orm_to_todo(orm) for orm in orms]

    async def _load_for_plan(
        self, session: AsyncSession, plan_id: UUID, todo_ids: Sequence[UUID]
    ) -> dict[str, TodoORM]:
        ids = [str(todo_id) for todo_id in todo_ids]
        result = await session.execute(
            select(TodoORM).where(and_(TodoORM.plan_id == str(plan_id), TodoORM.id.in_(ids)))
        )
        found = {orm.id: orm for orm in result.scalars().all()}
        missing = [todo_id for todo_id in ids if todo_id not in found]
        if missing:
            raise NotFoundError("Todo not found", details={"todo_ids": missing})
        return found

    async def set_orders(self, plan_id: UUID, orders: Mapping[UUID, int]) -> list[Todo]:
        """Overwrite todo orders."""
        if not orders:
            return []
        async with self._session_factory() as session:
            found = await self._load_for_plan(session, plan_id, list(orders))
            now = datetime.utcnow()
            for todo_id, order in orders.items():
                orm = found[str(todo_id)]
                orm.order = order
                orm.updated_at = now
            await session.commit()
            return [orm_to_todo(found[str(todo_id)]) for todo_id in orders]

    async def set_due_dates(self, plan_id: UUID, due_dates: Mapping[UUID, datetime]) -> list[Todo]:
        """Overwrite todo due dates."""
        if not due_dates:
            return []
        async with self._session_factory() as session:
            found = await self._load_for_plan(session, plan_id, list(due_dates))
            now = datetime.utcnow()
            for todo_id, due in due_dates.items():
                orm = found[str(todo_id)]
                orm.due_date = to_naive_utc(due)
                orm.updated_at = now
            await session.commit()
            return [orm_to_todo(found[str(todo_id)]) for todo_id in due_dates]

    async def count(self, plan_id: UUID) -> TodoCount:
        """Count todos by status."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TodoORM.status, func.count(TodoORM.id))
                .where(TodoORM.plan_id == str(plan_id))
                .group_by(TodoORM.status)
            )
            by_status = {status: total for status, total in result.all()}
            return TodoCount(
                total=sum(by_status.values()),
                completed=by_status.get(TodoStatus.COMPLETED.value, 0),
                pending=by_status.get(TodoStatus.PENDING.value, 0),
            )
