"""
Unit tests for todo queries and reordering (backed by in-memory SQLite).
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from studyplan.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from studyplan.models.enums import PlanStatus, TodoStatus
from studyplan.models.plan import PlanCreate
from studyplan.models.todo import TodoCreate, TodoOrderUpdate
from studyplan.services.todo_service import TodoService

DAY = date(2024, 3, 10)


@pytest.fixture
def todos(plan_repo, todo_repo):
    return TodoService(plan_repo, todo_repo)


def _at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def _todo(title: str, order: int, due: datetime, status=TodoStatus.PENDING) -> TodoCreate:
    return TodoCreate(title=title, order=order, due_date=due, status=status)


async def _plan(plan_repo, user_id, todos, title="Plan"):
    return await plan_repo.create(
        user_id, PlanCreate(title=title, status=PlanStatus.ACTIVE), todos
    )


@pytest.mark.asyncio
async def test_list_for_date_uses_whole_utc_day(todos, plan_repo, test_user_id):
    plan = await _plan(
        plan_repo,
        test_user_id,
        [
            _todo("day before", 1, _at(DAY - timedelta(days=1), 23, 59)),
            _todo("midnight", 2, _at(DAY, 0)),
            _todo("late", 3, _at(DAY, 23, 59)),
            _todo("next day", 4, _at(DAY + timedelta(days=1), 0)),
        ],
    )

    result = await todos.list_for_date(test_user_id, DAY, plan_id=plan.id)

    assert sorted(todo.title for todo in result) == ["late", "midnight"]


@pytest.mark.asyncio
async def test_list_for_date_spans_user_plans_only(
    todos, plan_repo, test_user_id, other_user_id
):
    await _plan(plan_repo, test_user_id, [_todo("mine A", 1, _at(DAY, 9))], title="A")
    await _plan(plan_repo, test_user_id, [_todo("mine B", 1, _at(DAY, 10))], title="B")
    await _plan(plan_repo, other_user_id, [_todo("theirs", 1, _at(DAY, 9))])

    result = await todos.list_for_date(test_user_id, DAY)

    assert sorted(todo.title for todo in result) == ["mine A", "mine B"]


@pytest.mark.asyncio
async def test_list_by_due_range_rejects_inverted_range(todos, test_user_id):
    with pytest.raises(ValidationError):
        await todos.list_by_due_range(test_user_id, _at(DAY, 12), _at(DAY, 8))


@pytest.mark.asyncio
async def test_list_overdue_is_pending_only(todos, plan_repo, test_user_id):
    past = datetime.now(timezone.utc) - timedelta(days=2)
    future = datetime.now(timezone.utc) + timedelta(days=2)
    await _plan(
        plan_repo,
        test_user_id,
        [
            _todo("late", 1, past),
            _todo("late but done", 2, past, status=TodoStatus.COMPLETED),
            _todo("late in progress", 3, past, status=TodoStatus.IN_PROGRESS),
            _todo("upcoming", 4, future),
        ],
    )

    result = await todos.list_overdue(test_user_id)

    assert [todo.title for todo in result] == ["late"]


@pytest.mark.asyncio
async def test_list_overdue_checks_plan_owner(todos, plan_repo, test_user_id, other_user_id):
    plan = await _plan(plan_repo, test_user_id, [])

    with pytest.raises(UnauthorizedError):
        await todos.list_overdue(other_user_id, plan_id=plan.id)


@pytest.mark.asyncio
async def test_reorder_writes_new_orders(todos, plan_repo, todo_repo, test_user_id):
    plan = await _plan(
        plan_repo,
        test_user_id,
        [_todo("a", 1, _at(DAY, 9)), _todo("b", 2, _at(DAY, 9))],
    )
    a, b = await todo_repo.list_by_plan(plan.id)

    result = await todos.reorder(
        test_user_id,
        plan.id,
        [TodoOrderUpdate(todo_id=a.id, order=5), TodoOrderUpdate(todo_id=b.id, order=1)],
    )

    assert [(todo.title, todo.order) for todo in result] == [("b", 1), ("a", 5)]
    assert [todo.due_date for todo in result] == [b.due_date, a.due_date]


@pytest.mark.asyncio
async def test_reorder_refuses_todo_of_other_plan(todos, plan_repo, todo_repo, test_user_id):
    plan = await _plan(plan_repo, test_user_id, [_todo("a", 1, _at(DAY, 9))], title="A")
    other = await _plan(plan_repo, test_user_id, [_todo("b", 1, _at(DAY, 9))], title="B")
    own = (await todo_repo.list_by_plan(plan.id))[0]
    foreign = (await todo_repo.list_by_plan(other.id))[0]

    with pytest.raises(NotFoundError):
        await todos.reorder(
            test_user_id,
            plan.id,
            [
                TodoOrderUpdate(todo_id=own.id, order=3),
                TodoOrderUpdate(todo_id=foreign.id, order=3),
            ],
        )

    assert (await todo_repo.get(own.id)).order == 1
    assert (await todo_repo.get(foreign.id)).order == 1


@pytest.mark.asyncio
async def test_reorder_requires_plan_owner(
    todos, plan_repo, todo_repo, test_user_id, other_user_id
):
    plan = await _plan(plan_repo, test_user_id, [_todo("a", 1, _at(DAY, 9))])
    own = (await todo_repo.list_by_plan(plan.id))[0]

    with pytest.raises(UnauthorizedError):
        await todos.reorder(other_user_id, plan.id, [TodoOrderUpdate(todo_id=own.id, order=9)])
