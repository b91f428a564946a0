"""
SQLite implementation of the activity log repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError

from studyplan.core.exceptions import BusinessLogicError
from studyplan.infrastructure.local.database import ActivityLogORM, get_session_factory
from studyplan.interfaces.activity_repository import IActivityRepository
from studyplan.models.activity import ActivityLog, ActivityLogCreate
from studyplan.models.enums import ActivityType
from studyplan.utils.datetime_utils import ensure_utc


class SqliteActivityRepository(IActivityRepository):
    """SQLite implementation of activity log repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ActivityLogORM) -> ActivityLog:
        """Convert ORM object to Pydantic model."""
        return ActivityLog(
            id=UUID(orm.id),
            user_id=orm.user_id,
            plan_id=UUID(orm.plan_id) if orm.plan_id else None,
            activity_type=ActivityType(orm.activity_type),
            description=orm.description or "",
            idempotency_key=orm.idempotency_key,
            payload=orm.payload or {},
            created_at=ensure_utc(orm.created_at),
        )

    async def create(self, user_id: str, entry: ActivityLogCreate) -> ActivityLog:
        """Append an activity entry."""
        async with self._session_factory() as session:
            orm = ActivityLogORM(
                id=str(uuid4()),
                user_id=user_id,
                plan_id=str(entry.plan_id) if entry.plan_id else None,
                activity_type=entry.activity_type.value,
                description=entry.description,
                idempotency_key=entry.idempotency_key,
                payload=entry.payload,
                created_at=datetime.utcnow(),
            )
            session.add(orm)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise BusinessLogicError(
                    f"Idempotency key already used: {entry.idempotency_key}"
                ) from e
            return self._orm_to_model(orm)

    async def get_by_idempotency_key(self, user_id: str, key: str) -> Optional[ActivityLog]:
        """Find an entry by idempotency key."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ActivityLogORM).where(
                    and_(
                        ActivityLogORM.user_id == user_id,
                        ActivityLogORM.idempotency_key == key,
                    )
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(
        self,
        user_id: str,
        plan_id: Optional[UUID] = None,
        limit: int = 50,
    ) -> list[ActivityLog]:
        """List entries, newest first."""
        async with self._session_factory() as session:
            query = select(ActivityLogORM).where(ActivityLogORM.user_id == user_id)
            if plan_id is not None:
                query = query.where(ActivityLogORM.plan_id == str(plan_id))
            query = query.order_by(ActivityLogORM.created_at.desc()).limit(limit)
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
