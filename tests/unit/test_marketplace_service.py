"""
Unit tests for marketplace publishing.
"""

from uuid import uuid4

import pytest

from studyplan.core.exceptions import BusinessLogicError, NotFoundError, UnauthorizedError
from studyplan.models.enums import ActivityType
from studyplan.models.marketplace import PublishRequest
from studyplan.models.plan import PlanCreate
from studyplan.models.todo import StepInput
from studyplan.services.marketplace_service import MarketplaceService
from studyplan.services.step_mutator import StepMutatorService


@pytest.fixture
def marketplace(plan_repo, todo_repo, marketplace_repo, activity_repo):
    return MarketplaceService(plan_repo, todo_repo, marketplace_repo, activity_repo=activity_repo)


@pytest.fixture
def mutator(plan_repo, todo_repo, marketplace_repo, purchase_repo, fork_repo):
    return StepMutatorService(
        plan_repo,
        todo_repo,
        marketplace_repo=marketplace_repo,
        purchase_repo=purchase_repo,
        fork_repo=fork_repo,
    )


async def _source_plan(mutator, user_id):
    return await mutator.create_with_steps(
        user_id,
        PlanCreate(title="Compilers"),
        [StepInput(title="Lexing", order=1), StepInput(title="Parsing", order=2)],
    )


@pytest.mark.asyncio
async def test_publish_snapshots_steps_without_dates(
    marketplace, mutator, activity_repo, test_user_id
):
    plan = await _source_plan(mutator, test_user_id)

    listing = await marketplace.publish(test_user_id, PublishRequest(source_plan_id=plan.id))

    assert listing.author_id == test_user_id
    assert listing.is_free is True
    assert listing.version == 1
    assert [step.title for step in listing.snapshot.todos] == ["Lexing", "Parsing"]
    entries = await activity_repo.list(test_user_id, plan_id=plan.id)
    assert entries[0].activity_type == ActivityType.PLAN_PUBLISHED


@pytest.mark.asyncio
async def test_republish_bumps_version(marketplace, mutator, test_user_id):
    plan = await _source_plan(mutator, test_user_id)
    first = await marketplace.publish(test_user_id, PublishRequest(source_plan_id=plan.id))

    second = await marketplace.publish(
        test_user_id, PublishRequest(source_plan_id=plan.id, tags=["cs"])
    )

    assert second.id == first.id
    assert second.version == 2
    assert second.tags == ["cs"]


@pytest.mark.asyncio
async def test_forked_plan_cannot_be_published(marketplace, mutator, test_user_id):
    plan = await _source_plan(mutator, test_user_id)
    copy = await mutator.fork_plan(test_user_id, plan.id)

    with pytest.raises(BusinessLogicError):
        await marketplace.publish(test_user_id, PublishRequest(source_plan_id=copy.id))


@pytest.mark.asyncio
async def test_publish_requires_owner(marketplace, mutator, test_user_id, other_user_id):
    plan = await _source_plan(mutator, test_user_id)

    with pytest.raises(UnauthorizedError):
        await marketplace.publish(other_user_id, PublishRequest(source_plan_id=plan.id))
    with pytest.raises(NotFoundError):
        await marketplace.publish(test_user_id, PublishRequest(source_plan_id=uuid4()))
