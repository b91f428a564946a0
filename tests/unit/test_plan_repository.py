"""
Unit tests for PlanRepository.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from studyplan.core.exceptions import NotFoundError
from studyplan.models.enums import PlanStatus, TodoStatus
from studyplan.models.plan import PlanCreate, PlanUpdate
from studyplan.models.todo import TodoCreate

DUE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _todo(title: str, order: int, status=TodoStatus.PENDING) -> TodoCreate:
    return TodoCreate(title=title, order=order, due_date=DUE, status=status)


@pytest.mark.asyncio
async def test_create_plan_with_todos(plan_repo, todo_repo, test_user_id):
    """Plan and todos are written together."""
    plan = await plan_repo.create(
        test_user_id,
        PlanCreate(title="Kotlin", status=PlanStatus.ACTIVE),
        [_todo("a", 2), _todo("b", 1)],
    )

    todos = await todo_repo.list_by_plan(plan.id)

    assert plan.user_id == test_user_id
    assert plan.status == PlanStatus.ACTIVE
    assert [todo.title for todo in todos] == ["b", "a"]
    assert sorted(todo.seq for todo in todos) == [1, 2]
    assert todos[0].due_date == DUE


@pytest.mark.asyncio
async def test_get_plan_is_owner_scoped(plan_repo, test_user_id, other_user_id):
    plan = await plan_repo.create(test_user_id, PlanCreate(title="Mine"))

    assert await plan_repo.get(test_user_id, plan.id) is not None
    assert await plan_repo.get(other_user_id, plan.id) is None
    assert (await plan_repo.get_by_id(plan.id)).user_id == test_user_id


@pytest.mark.asyncio
async def test_list_and_count_plans(plan_repo, test_user_id):
    for i in range(3):
        await plan_repo.create(
            test_user_id,
            PlanCreate(title=f"Plan {i}", status=PlanStatus.ACTIVE if i else PlanStatus.DRAFT),
        )

    assert len(await plan_repo.list(test_user_id)) == 3
    assert len(await plan_repo.list(test_user_id, status=PlanStatus.ACTIVE)) == 2
    assert await plan_repo.count(test_user_id) == 3


@pytest.mark.asyncio
async def test_list_ids_is_not_paged(plan_repo, test_user_id, other_user_id):
    created = [
        (await plan_repo.create(test_user_id, PlanCreate(title=f"Plan {i}"))).id
        for i in range(105)
    ]
    await plan_repo.create(other_user_id, PlanCreate(title="Foreign"))

    assert len(await plan_repo.list(test_user_id)) == 100
    assert set(await plan_repo.list_ids(test_user_id)) == set(created)
    assert await plan_repo.list_ids(test_user_id, status=PlanStatus.ACTIVE) == []


@pytest.mark.asyncio
async def test_update_plan(plan_repo, test_user_id):
    plan = await plan_repo.create(test_user_id, PlanCreate(title="Old"))

    updated = await plan_repo.update(
        test_user_id, plan.id, PlanUpdate(title="New", status=PlanStatus.ARCHIVED)
    )

    assert updated.title == "New"
    assert updated.status == PlanStatus.ARCHIVED


@pytest.mark.asyncio
async def test_update_missing_plan(plan_repo, test_user_id):
    with pytest.raises(NotFoundError):
        await plan_repo.update(test_user_id, uuid4(), PlanUpdate(title="x"))


@pytest.mark.asyncio
async def test_delete_plan_cascades(plan_repo, todo_repo, test_user_id):
    plan = await plan_repo.create(test_user_id, PlanCreate(title="Gone"), [_todo("a", 1)])
    todo = (await todo_repo.list_by_plan(plan.id))[0]

    assert await plan_repo.delete(test_user_id, plan.id) is True
    assert await plan_repo.get(test_user_id, plan.id) is None
    assert await todo_repo.get(todo.id) is None
    assert await plan_repo.delete(test_user_id, plan.id) is False
