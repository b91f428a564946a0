"""
Marketplace API endpoints.

Publishing plans as snapshots and remixing published snapshots.
"""

from uuid import UUID

from fastapi import APIRouter, status

from studyplan.api.deps import CurrentUser, Marketplace, StepMutator, to_http_exception
from studyplan.core.exceptions import StudyPlanError
from studyplan.models.marketplace import MarketplacePlan, PublishRequest
from studyplan.models.plan import Plan

router = APIRouter()


@router.post("/publish", response_model=MarketplacePlan, status_code=status.HTTP_201_CREATED)
async def publish_plan(body: PublishRequest, user: CurrentUser, marketplace: Marketplace):
    """Publish (or re-publish) one of the caller's plans."""
    try:
        return await marketplace.publish(user.id, body)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post(
    "/{marketplace_plan_id}/fork",
    response_model=Plan,
    status_code=status.HTTP_201_CREATED,
)
async def fork_marketplace_plan(
    marketplace_plan_id: UUID,
    user: CurrentUser,
    mutator: StepMutator,
):
    """Remix a published plan into a new plan owned by the caller."""
    try:
        return await mutator.fork_snapshot(user.id, marketplace_plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)
