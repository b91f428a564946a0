"""
Unit tests for the date shifter service (backed by in-memory SQLite).
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from studyplan.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from studyplan.models.enums import ActivityType, TodoStatus
from studyplan.models.plan import PlanCreate
from studyplan.models.todo import StepInput, TodoUpdate
from studyplan.services.date_shifter import DateShifterService
from studyplan.services.step_mutator import StepMutatorService

START = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def shifter(plan_repo, todo_repo, activity_repo):
    return DateShifterService(plan_repo, todo_repo, activity_repo=activity_repo)


@pytest.fixture
def mutator(plan_repo, todo_repo):
    return StepMutatorService(plan_repo, todo_repo)


async def _make_plan(mutator, user_id, orders, title="Plan"):
    steps = [StepInput(title=f"Step {i}", order=order) for i, order in enumerate(orders)]
    return await mutator.create_with_steps(
        user_id, PlanCreate(title=title), steps, start_date=START
    )


@pytest.mark.asyncio
async def test_shift_by_days_moves_only_pending(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 2, 3, 4, 5])
    todos = await todo_repo.list_by_plan(plan.id)
    for todo in todos[:2]:
        await todo_repo.update(todo.id, TodoUpdate(status=TodoStatus.COMPLETED))
    before = {todo.id: todo.due_date for todo in todos}

    shifted = await shifter.shift_by_days(test_user_id, plan.id, 7)

    after = {todo.id: todo for todo in await todo_repo.list_by_plan(plan.id)}
    assert len(shifted) == 3
    for todo in todos[:2]:
        assert after[todo.id].due_date == before[todo.id]
    for todo in todos[2:]:
        assert after[todo.id].due_date == before[todo.id] + timedelta(days=7)
        assert after[todo.id].order == todo.order


@pytest.mark.asyncio
async def test_shift_round_trip(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 1, 2])
    before = await todo_repo.list_by_plan(plan.id)

    await shifter.shift_by_days(test_user_id, plan.id, 4)
    await shifter.shift_by_days(test_user_id, plan.id, -4)

    after = await todo_repo.list_by_plan(plan.id)
    assert [todo.due_date for todo in after] == [todo.due_date for todo in before]


@pytest.mark.asyncio
async def test_shift_all_statuses(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 2])
    todos = await todo_repo.list_by_plan(plan.id)
    await todo_repo.update(todos[0].id, TodoUpdate(status=TodoStatus.COMPLETED))

    shifted = await shifter.shift_by_days(test_user_id, plan.id, 1, pending_only=False)

    assert len(shifted) == 2


@pytest.mark.asyncio
async def test_shift_rejects_non_integer_days(shifter, mutator, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1])

    with pytest.raises(ValidationError):
        await shifter.shift_by_days(test_user_id, plan.id, 1.5)


@pytest.mark.asyncio
async def test_shift_requires_ownership(
    shifter, mutator, todo_repo, test_user_id, other_user_id
):
    plan = await _make_plan(mutator, test_user_id, [1, 2])
    before = await todo_repo.list_by_plan(plan.id)

    with pytest.raises(UnauthorizedError):
        await shifter.shift_by_days(other_user_id, plan.id, 3)
    with pytest.raises(UnauthorizedError):
        await shifter.shift_pending_for_user(other_user_id, 3, plan_id=plan.id)

    assert await todo_repo.list_by_plan(plan.id) == before


@pytest.mark.asyncio
async def test_shift_pending_for_user_covers_all_plans(
    shifter, mutator, todo_repo, test_user_id, other_user_id
):
    first = await _make_plan(mutator, test_user_id, [1, 2], title="First")
    second = await _make_plan(mutator, test_user_id, [1], title="Second")
    foreign = await _make_plan(mutator, other_user_id, [1], title="Foreign")
    foreign_before = await todo_repo.list_by_plan(foreign.id)

    shifted = await shifter.shift_pending_for_user(test_user_id, 2)

    assert len(shifted) == 3
    assert {todo.plan_id for todo in shifted} == {first.id, second.id}
    assert await todo_repo.list_by_plan(foreign.id) == foreign_before


@pytest.mark.asyncio
async def test_idempotency_key_applies_once(
    shifter, mutator, todo_repo, activity_repo, test_user_id
):
    plan = await _make_plan(mutator, test_user_id, [1, 2])
    before = await todo_repo.list_by_plan(plan.id)

    await shifter.shift_by_days(test_user_id, plan.id, 3, idempotency_key="retry-1")
    repeated = await shifter.shift_by_days(test_user_id, plan.id, 3, idempotency_key="retry-1")

    after = await todo_repo.list_by_plan(plan.id)
    assert [todo.due_date for todo in after] == [
        todo.due_date + timedelta(days=3) for todo in before
    ]
    assert [todo.due_date for todo in repeated] == [todo.due_date for todo in after]
    entries = await activity_repo.list(test_user_id, plan_id=plan.id)
    assert [entry.activity_type for entry in entries] == [ActivityType.STEPS_SHIFTED]


@pytest.mark.asyncio
async def test_shift_from_pivot_moves_tail_orders(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 2, 3, 4, 5])
    todos = await todo_repo.list_by_plan(plan.id)
    pivot = todos[2]

    await shifter.shift_from_pivot(test_user_id, plan.id, pivot.id, 2)

    after = {todo.id: todo for todo in await todo_repo.list_by_plan(plan.id)}
    assert [after[todo.id].order for todo in todos] == [1, 2, 5, 6, 7]
    assert [after[todo.id].due_date for todo in todos] == [todo.due_date for todo in todos]


@pytest.mark.asyncio
async def test_shift_from_pivot_ties_use_insertion_order(
    shifter, mutator, todo_repo, test_user_id
):
    plan = await _make_plan(mutator, test_user_id, [1, 1, 1])
    todos = await todo_repo.list_by_plan(plan.id)

    await shifter.shift_from_pivot(test_user_id, plan.id, todos[1].id, 1)

    after = {todo.id: todo.order for todo in await todo_repo.list_by_plan(plan.id)}
    assert [after[todo.id] for todo in todos] == [1, 2, 2]


@pytest.mark.asyncio
async def test_shift_from_pivot_foreign_todo(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 2])
    other = await _make_plan(mutator, test_user_id, [1], title="Other")
    foreign_todo = (await todo_repo.list_by_plan(other.id))[0]

    with pytest.raises(NotFoundError):
        await shifter.shift_from_pivot(test_user_id, plan.id, foreign_todo.id, 1)
    with pytest.raises(NotFoundError):
        await shifter.shift_from_pivot(test_user_id, plan.id, uuid4(), 1)


@pytest.mark.asyncio
async def test_reschedule_after_pivot_shift(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 2, 3])
    todos = await todo_repo.list_by_plan(plan.id)
    await shifter.shift_from_pivot(test_user_id, plan.id, todos[1].id, 5)

    rescheduled = await shifter.reschedule_pending(test_user_id, plan.id)

    assert [todo.order for todo in rescheduled] == [1, 7, 8]
    assert [todo.due_date for todo in rescheduled] == [
        START,
        START + timedelta(days=1),
        START + timedelta(days=2),
    ]


@pytest.mark.asyncio
async def test_reschedule_with_new_start(shifter, mutator, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1, 1, 2])
    new_start = datetime(2024, 2, 1, tzinfo=timezone.utc)

    rescheduled = await shifter.reschedule_pending(test_user_id, plan.id, start_date=new_start)

    assert [todo.due_date for todo in rescheduled] == [
        new_start,
        new_start,
        new_start + timedelta(days=1),
    ]


@pytest.mark.asyncio
async def test_idempotency_key_reused_on_other_plan(shifter, mutator, todo_repo, test_user_id):
    first = await _make_plan(mutator, test_user_id, [1], title="First")
    second = await _make_plan(mutator, test_user_id, [1], title="Second")
    second_before = await todo_repo.list_by_plan(second.id)

    await shifter.shift_by_days(test_user_id, first.id, 3, idempotency_key="k1")

    with pytest.raises(ValidationError, match="Idempotency key reused"):
        await shifter.shift_by_days(test_user_id, second.id, 5, idempotency_key="k1")

    assert await todo_repo.list_by_plan(second.id) == second_before


@pytest.mark.asyncio
async def test_idempotency_key_reused_with_other_days(shifter, mutator, todo_repo, test_user_id):
    plan = await _make_plan(mutator, test_user_id, [1])

    await shifter.shift_by_days(test_user_id, plan.id, 3, idempotency_key="k2")

    with pytest.raises(ValidationError):
        await shifter.shift_by_days(test_user_id, plan.id, 4, idempotency_key="k2")
    with pytest.raises(ValidationError):
        await shifter.shift_from_pivot(
            test_user_id,
            plan.id,
            (await todo_repo.list_by_plan(plan.id))[0].id,
            1,
            idempotency_key="k2",
        )

    todos = await todo_repo.list_by_plan(plan.id)
    assert todos[0].due_date == START + timedelta(days=3)
    assert todos[0].order == 1
