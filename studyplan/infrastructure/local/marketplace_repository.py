"""
SQLite implementations of the marketplace, purchase and plan fork repositories.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from studyplan.core.exceptions import NotFoundError
from studyplan.infrastructure.local.database import (
    MarketplacePlanORM,
    PlanForkORM,
    PurchaseORM,
    get_session_factory,
)
from studyplan.interfaces.marketplace_repository import (
    IMarketplaceRepository,
    IPlanForkRepository,
    IPurchaseRepository,
)
from studyplan.models.enums import MarketplaceVisibility
from studyplan.models.marketplace import (
    MarketplacePlan,
    MarketplaceSnapshot,
    PlanFork,
    Purchase,
)
from studyplan.utils.datetime_utils import ensure_utc


class SqliteMarketplaceRepository(IMarketplaceRepository):
    """SQLite implementation of marketplace repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: MarketplacePlanORM) -> MarketplacePlan:
        return MarketplacePlan(
            id=UUID(orm.id),
            source_plan_id=UUID(orm.source_plan_id),
            author_id=orm.author_id,
            snapshot=MarketplaceSnapshot.model_validate(orm.snapshot),
            visibility=MarketplaceVisibility(orm.visibility or MarketplaceVisibility.PUBLIC.value),
            tags=orm.tags or [],
            price=orm.price,
            is_free=bool(orm.is_free),
            installs=orm.installs or 0,
            version=orm.version or 1,
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def get(self, marketplace_plan_id: UUID) -> Optional[MarketplacePlan]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MarketplacePlanORM).where(MarketplacePlanORM.id == str(marketplace_plan_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_by_source_plan(self, source_plan_id: UUID) -> Optional[MarketplacePlan]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MarketplacePlanORM).where(
                    MarketplacePlanORM.source_plan_id == str(source_plan_id)
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def publish(
        self,
        author_id: str,
        source_plan_id: UUID,
        snapshot: MarketplaceSnapshot,
        visibility: Optional[MarketplaceVisibility] = None,
        tags: Optional[list[str]] = None,
        price: Optional[float] = None,
        is_free: Optional[bool] = None,
    ) -> MarketplacePlan:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MarketplacePlanORM).where(
                    MarketplacePlanORM.source_plan_id == str(source_plan_id)
                )
            )
            orm = result.scalar_one_or_none()
            now = datetime.utcnow()

            if orm is None:
                orm = MarketplacePlanORM(
                    id=str(uuid4()),
                    source_plan_id=str(source_plan_id),
                    author_id=author_id,
                    visibility=(visibility or MarketplaceVisibility.PUBLIC).value,
                    tags=tags or [],
                    price=price,
                    is_free=True if is_free is None else is_free,
                    installs=0,
                    version=1,
                    created_at=now,
                )
                session.add(orm)
            else:
                orm.version = (orm.version or 1) + 1
                if visibility is not None:
                    orm.visibility = visibility.value
                if tags is not None:
                    orm.tags = tags
                if price is not None:
                    orm.price = price
                if is_free is not None:
                    orm.is_free = is_free

            orm.snapshot = snapshot.model_dump(mode="json")
            orm.updated_at = now
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def increment_installs(self, marketplace_plan_id: UUID) -> MarketplacePlan:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MarketplacePlanORM).where(MarketplacePlanORM.id == str(marketplace_plan_id))
            )
            orm = result.scalar_one_or_none()

            if not orm:
                raise NotFoundError(f"Marketplace plan {marketplace_plan_id} not found")

            orm.installs = (orm.installs or 0) + 1
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)


class SqlitePurchaseRepository(IPurchaseRepository):
    """SQLite implementation of purchase repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PurchaseORM) -> Purchase:
        return Purchase(
            id=UUID(orm.id),
            user_id=orm.user_id,
            marketplace_plan_id=UUID(orm.marketplace_plan_id),
            price=orm.price or 0,
            purchased_at=ensure_utc(orm.purchased_at),
        )

    async def create(self, user_id: str, marketplace_plan_id: UUID, price: float = 0) -> Purchase:
        async with self._session_factory() as session:
            orm = PurchaseORM(
                id=str(uuid4()),
                user_id=user_id,
                marketplace_plan_id=str(marketplace_plan_id),
                price=price,
                purchased_at=datetime.utcnow(),
            )
            session.add(orm)
            await session.commit()
            return self._orm_to_model(orm)

    async def get(self, user_id: str, marketplace_plan_id: UUID) -> Optional[Purchase]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PurchaseORM).where(
                    and_(
                        PurchaseORM.user_id == user_id,
                        PurchaseORM.marketplace_plan_id == str(marketplace_plan_id),
                    )
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None


class SqlitePlanForkRepository(IPlanForkRepository):
    """SQLite implementation of plan fork repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PlanForkORM) -> PlanFork:
        return PlanFork(
            id=UUID(orm.id),
            user_id=orm.user_id,
            original_plan_id=UUID(orm.original_plan_id),
            forked_plan_id=UUID(orm.forked_plan_id),
            created_at=ensure_utc(orm.created_at),
        )

    async def create(self, user_id: str, original_plan_id: UUID, forked_plan_id: UUID) -> PlanFork:
        async with self._session_factory() as session:
            orm = PlanForkORM(
                id=str(uuid4()),
                user_id=user_id,
                original_plan_id=str(original_plan_id),
                forked_plan_id=str(forked_plan_id),
                created_at=datetime.utcnow(),
            )
            session.add(orm)
            await session.commit()
            return self._orm_to_model(orm)

    async def list_by_user(self, user_id: str) -> list[PlanFork]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(PlanForkORM)
                .where(PlanForkORM.user_id == user_id)
                .order_by(PlanForkORM.created_at.desc())
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
