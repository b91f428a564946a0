"""
Marketplace publishing.

Publishing copies a plan into an immutable snapshot. Steps lose their due
dates in the copy; whoever forks the listing gets a fresh schedule.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from studyplan.core.exceptions import BusinessLogicError
from studyplan.core.logger import setup_logger
from studyplan.interfaces.activity_repository import IActivityRepository
from studyplan.interfaces.marketplace_repository import IMarketplaceRepository
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.activity import ActivityLogCreate
from studyplan.models.enums import ActivityType
from studyplan.models.marketplace import (
    MarketplacePlan,
    MarketplaceSnapshot,
    PublishRequest,
    SnapshotStep,
)
from studyplan.services.plan_access import authorize_plan

logger = setup_logger(__name__)


class MarketplaceService:
    """Publishes plans as marketplace snapshots."""

    def __init__(
        self,
        plan_repo: IPlanRepository,
        todo_repo: ITodoRepository,
        marketplace_repo: IMarketplaceRepository,
        activity_repo: Optional[IActivityRepository] = None,
    ):
        self.plan_repo = plan_repo
        self.todo_repo = todo_repo
        self.marketplace_repo = marketplace_repo
        self.activity_repo = activity_repo

    async def publish(self, user_id: str, request: PublishRequest) -> MarketplacePlan:
        """
        Publish (or re-publish) one of the user's plans.

        Args:
            user_id: Caller, must own the plan
            request: Source plan and listing settings

        Returns:
            The listing; ``version`` goes up on every re-publish

        Raises:
            NotFoundError: Plan does not exist
            UnauthorizedError: Caller does not own the plan
            BusinessLogicError: The plan is itself a fork
        """
        plan = await authorize_plan(self.plan_repo, user_id, request.source_plan_id)
        if plan.is_forked:
            raise BusinessLogicError("Forked plans cannot be published")

        todos = await self.todo_repo.list_by_plan(plan.id)
        snapshot = MarketplaceSnapshot(
            title=plan.title,
            description=plan.description,
            difficulty=plan.difficulty,
            estimated_duration=plan.estimated_duration,
            todos=[
                SnapshotStep(
                    title=todo.title,
                    description=todo.description,
                    order=todo.order,
                    priority=todo.priority,
                    estimated_time=todo.estimated_time,
                    resources=todo.resources,
                )
                for todo in todos
            ],
        )
        listing = await self.marketplace_repo.publish(
            user_id,
            plan.id,
            snapshot,
            visibility=request.visibility,
            tags=request.tags,
            price=request.price,
            is_free=request.is_free,
        )
        logger.info(f"Published plan {plan.id} as listing {listing.id} v{listing.version}")

        if self.activity_repo:
            await self.activity_repo.create(
                user_id,
                ActivityLogCreate(
                    plan_id=plan.id,
                    activity_type=ActivityType.PLAN_PUBLISHED,
                    description=f"Published '{plan.title}'",
                    payload={"marketplace_plan_id": str(listing.id), "version": listing.version},
                ),
            )
        return listing
