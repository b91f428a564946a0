from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import HTTPException

from studyplan.api.deps import to_http_exception
from studyplan.api.plans import create_plan, delete_plan, get_plan, shift_plan_days
from studyplan.core.exceptions import (
    BusinessLogicError,
    NotFoundError,
    PurchaseRequiredError,
    StudyPlanError,
    UnauthorizedError,
    ValidationError,
)
from studyplan.models.plan import Plan, PlanWithStepsCreate
from studyplan.models.schedule import ShiftDaysRequest


def _make_plan(user_id: str = "owner-user") -> Plan:
    now = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    return Plan(
        id=uuid4(),
        user_id=user_id,
        title="Statistics",
        start_date=now,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (NotFoundError("Plan x not found"), 404),
        (UnauthorizedError(), 403),
        (PurchaseRequiredError(), 403),
        (ValidationError("Invalid step at index 0"), 400),
        (BusinessLogicError("Forked plans cannot be published"), 400),
        (StudyPlanError("boom"), 500),
    ],
)
def test_to_http_exception_status(error, status_code) -> None:
    exc = to_http_exception(error)

    assert exc.status_code == status_code
    assert exc.detail == error.message


@pytest.mark.asyncio
async def test_get_plan_other_owner_is_forbidden() -> None:
    plan = _make_plan()
    repo = AsyncMock()
    repo.get_by_id.return_value = plan

    with pytest.raises(HTTPException) as exc_info:
        await get_plan(plan_id=plan.id, user=SimpleNamespace(id="intruder"), repo=repo)

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "Unauthorized"


@pytest.mark.asyncio
async def test_get_plan_missing_is_not_found() -> None:
    repo = AsyncMock()
    repo.get_by_id.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await get_plan(plan_id=uuid4(), user=SimpleNamespace(id="owner-user"), repo=repo)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_create_plan_without_steps_uses_repository() -> None:
    plan = _make_plan()
    repo = AsyncMock()
    repo.create.return_value = plan
    mutator = AsyncMock()

    result = await create_plan(
        plan=PlanWithStepsCreate(title="Statistics"),
        user=SimpleNamespace(id="owner-user"),
        repo=repo,
        mutator=mutator,
    )

    assert result == plan
    mutator.create_with_steps.assert_not_awaited()
    assert repo.create.await_args.args[0] == "owner-user"


@pytest.mark.asyncio
async def test_create_plan_with_steps_uses_mutator() -> None:
    plan = _make_plan()
    mutator = AsyncMock()
    mutator.create_with_steps.return_value = plan

    await create_plan(
        plan=PlanWithStepsCreate(title="Statistics", steps=[{"title": "Mean", "order": 1}]),
        user=SimpleNamespace(id="owner-user"),
        repo=AsyncMock(),
        mutator=mutator,
    )

    args = mutator.create_with_steps.await_args.args
    assert args[0] == "owner-user"
    assert [step.title for step in args[2]] == ["Mean"]


@pytest.mark.asyncio
async def test_create_plan_invalid_step_is_bad_request() -> None:
    mutator = AsyncMock()
    mutator.create_with_steps.side_effect = ValidationError("Invalid step at index 0")

    with pytest.raises(HTTPException) as exc_info:
        await create_plan(
            plan=PlanWithStepsCreate(title="x", steps=[{"title": "a", "order": 1}]),
            user=SimpleNamespace(id="owner-user"),
            repo=AsyncMock(),
            mutator=mutator,
        )

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_shift_forwards_request_fields() -> None:
    plan_id = uuid4()
    shifter = AsyncMock()
    shifter.shift_by_days.return_value = []

    await shift_plan_days(
        plan_id=plan_id,
        body=ShiftDaysRequest(days=-2, pending_only=False, idempotency_key="k1"),
        user=SimpleNamespace(id="owner-user"),
        shifter=shifter,
    )

    shifter.shift_by_days.assert_awaited_once_with(
        "owner-user", plan_id, -2, pending_only=False, idempotency_key="k1"
    )


@pytest.mark.asyncio
async def test_delete_plan_checks_owner_first() -> None:
    plan = _make_plan()
    repo = AsyncMock()
    repo.get_by_id.return_value = plan

    with pytest.raises(HTTPException) as exc_info:
        await delete_plan(plan_id=plan.id, user=SimpleNamespace(id="intruder"), repo=repo)

    assert exc_info.value.status_code == 403
    repo.delete.assert_not_awaited()
