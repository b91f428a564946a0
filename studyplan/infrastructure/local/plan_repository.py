"""
SQLite implementation of Plan repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, func, select

from studyplan.core.exceptions import NotFoundError
from studyplan.infrastructure.local.database import PlanORM, TodoORM, get_session_factory
from studyplan.infrastructure.local.todo_repository import todo_to_orm
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.models.enums import Difficulty, PlanStatus
from studyplan.models.plan import Plan, PlanCreate, PlanUpdate
from studyplan.models.todo import TodoCreate
from studyplan.utils.datetime_utils import ensure_utc, to_naive_utc


class SqlitePlanRepository(IPlanRepository):
    """SQLite implementation of plan repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PlanORM) -> Plan:
        """Convert ORM object to Pydantic model."""
        return Plan(
            id=UUID(orm.id),
            user_id=orm.user_id,
            chat_id=orm.chat_id,
            title=orm.title,
            description=orm.description,
            difficulty=Difficulty(orm.difficulty or Difficulty.MEDIUM.value),
            estimated_duration=orm.estimated_duration,
            status=PlanStatus(orm.status or PlanStatus.DRAFT.value),
            is_forked=bool(orm.is_forked),
            start_date=ensure_utc(orm.start_date),
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def create(
        self,
        user_id: str,
        plan: PlanCreate,
        todos: Sequence[TodoCreate] = (),
    ) -> Plan:
        """Create a plan and its todos in one transaction."""
        async with self._session_factory() as session:
            now = datetime.utcnow()
            orm = PlanORM(
                id=str(uuid4()),
                user_id=user_id,
                chat_id=plan.chat_id,
                title=plan.title,
                description=plan.description,
                difficulty=plan.difficulty.value,
                estimated_duration=plan.estimated_duration,
                status=plan.status.value,
                is_forked=plan.is_forked,
                start_date=to_naive_utc(plan.start_date) or now,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            # Flush the plan first so the todo foreign keys resolve.
            await session.flush()
            session.add_all(
                [todo_to_orm(orm.id, todo, seq) for seq, todo in enumerate(todos, start=1)]
            )
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, user_id: str, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID, scoped to its owner."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanORM).where(
                    and_(PlanORM.id == str(plan_id), PlanORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_by_id(self, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID regardless of owner."""
        async with self._session_factory() as session:
            result = await session.execute(select(PlanORM).where(PlanORM.id == str(plan_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(
        self,
        user_id: str,
        status: Optional[PlanStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Plan]:
        """List plans with optional status filter."""
        async with self._session_factory() as session:
            query = select(PlanORM).where(PlanORM.user_id == user_id)

            if status is not None:
                query = query.where(PlanORM.status == status.value)

            query = query.order_by(PlanORM.created_at.desc())
            query = query.limit(limit).offset(offset)

            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_ids(self, user_id: str, status: Optional[PlanStatus] = None) -> list[UUID]:
        """List all plan IDs of a user."""
        async with self._session_factory() as session:
            query = select(PlanORM.id).where(PlanORM.user_id == user_id)
            if status is not None:
                query = query.where(PlanORM.status == status.value)
            result = await session.execute(query)
            return [UUID(plan_id) for plan_id in result.scalars().all()]

    async def update(self, user_id: str, plan_id: UUID, update: PlanUpdate) -> Plan:
        """Update an existing plan."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanORM).where(
                    and_(PlanORM.id == str(plan_id), PlanORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()

            if not orm:
                raise NotFoundError(f"Plan {plan_id} not found")

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is not None:
                    if hasattr(value, "value"):  # Enum
                        value = value.value
                    setattr(orm, field, value)

            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, user_id: str, plan_id: UUID) -> bool:
        """Delete a plan and its todos."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanORM).where(
                    and_(PlanORM.id == str(plan_id), PlanORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()

            if not orm:
                return False

            # SQLite does not enforce ON DELETE CASCADE unless the pragma is on.
            await session.execute(delete(TodoORM).where(TodoORM.plan_id == orm.id))
            await session.delete(orm)
            await session.commit()
            return True

    async def count(self, user_id: str) -> int:
        """Count plans owned by the user."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(PlanORM.id)).where(PlanORM.user_id == user_id)
            )
            return result.scalar_one()
