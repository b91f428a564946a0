"""
Todos API endpoints.

CRUD and calendar queries for plan todos.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from studyplan.api.deps import CurrentUser, DateShifter, Todos, to_http_exception
from studyplan.core.exceptions import StudyPlanError
from studyplan.models.enums import TodoStatus
from studyplan.models.schedule import ShiftPendingRequest
from studyplan.models.todo import (
    Todo,
    TodoCreate,
    TodoCreateRequest,
    TodoReorderRequest,
    TodoStatusUpdate,
    TodoUpdate,
)

router = APIRouter()


@router.post("", response_model=Todo, status_code=status.HTTP_201_CREATED)
async def create_todo(body: TodoCreateRequest, user: CurrentUser, todos: Todos):
    """Create a todo in one of the caller's plans."""
    try:
        return await todos.create(
            user.id, body.plan_id, TodoCreate(**body.model_dump(exclude={"plan_id"}))
        )
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("", response_model=list[Todo])
async def list_todos(
    user: CurrentUser,
    todos: Todos,
    plan_id: UUID = Query(..., description="Plan ID"),
    status_filter: Optional[TodoStatus] = Query(None, alias="status"),
):
    """List a plan's todos ascending by order."""
    try:
        return await todos.list_for_plan(user.id, plan_id, status=status_filter)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("/range", response_model=list[Todo])
async def list_todos_in_range(
    user: CurrentUser,
    todos: Todos,
    start: datetime = Query(..., description="Inclusive lower bound (ISO)"),
    end: datetime = Query(..., description="Inclusive upper bound (ISO)"),
    plan_id: Optional[UUID] = Query(None),
):
    """Todos due between start and end."""
    try:
        return await todos.list_by_due_range(user.id, start, end, plan_id=plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("/today", response_model=list[Todo])
async def list_today(user: CurrentUser, todos: Todos):
    """Pending todos due today across active plans."""
    return await todos.list_today(user.id)


@router.get("/overdue", response_model=list[Todo])
async def list_overdue(
    user: CurrentUser,
    todos: Todos,
    plan_id: Optional[UUID] = Query(None),
):
    """Pending todos past their due date."""
    try:
        return await todos.list_overdue(user.id, plan_id=plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("/date/{day}", response_model=list[Todo])
async def list_todos_for_date(
    day: date,
    user: CurrentUser,
    todos: Todos,
    plan_id: Optional[UUID] = Query(None),
):
    """Todos due on one calendar day (UTC)."""
    try:
        return await todos.list_for_date(user.id, day, plan_id=plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/shift", response_model=list[Todo])
async def shift_pending_todos(
    body: ShiftPendingRequest,
    user: CurrentUser,
    shifter: DateShifter,
):
    """Move pending todos of every plan (or one plan) by whole days."""
    try:
        return await shifter.shift_pending_for_user(
            user.id,
            body.days,
            plan_id=body.plan_id,
            idempotency_key=body.idempotency_key,
        )
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/reorder", response_model=list[Todo])
async def reorder_todos(body: TodoReorderRequest, user: CurrentUser, todos: Todos):
    """Write new orders for several todos of one plan."""
    try:
        return await todos.reorder(user.id, body.plan_id, body.orders)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.delete("/completed")
async def delete_completed_todos(
    user: CurrentUser,
    todos: Todos,
    plan_id: UUID = Query(..., description="Plan ID"),
):
    """Delete a plan's completed todos."""
    try:
        deleted = await todos.delete_completed(user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)
    return {"deleted": deleted}


@router.get("/{todo_id}", response_model=Todo)
async def get_todo(todo_id: UUID, user: CurrentUser, todos: Todos):
    """Get a todo by ID."""
    try:
        return await todos.get(user.id, todo_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.patch("/{todo_id}", response_model=Todo)
async def update_todo(
    todo_id: UUID,
    update: TodoUpdate,
    user: CurrentUser,
    todos: Todos,
):
    """Update a todo."""
    try:
        return await todos.update(user.id, todo_id, update)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.patch("/{todo_id}/status", response_model=Todo)
async def update_todo_status(
    todo_id: UUID,
    body: TodoStatusUpdate,
    user: CurrentUser,
    todos: Todos,
):
    """Change only the todo status."""
    try:
        return await todos.update_status(user.id, todo_id, body.status)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/{todo_id}/complete", response_model=Todo)
async def complete_todo(todo_id: UUID, user: CurrentUser, todos: Todos):
    """Mark a todo completed."""
    try:
        return await todos.complete(user.id, todo_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(todo_id: UUID, user: CurrentUser, todos: Todos):
    """Delete a todo."""
    try:
        deleted = await todos.delete(user.id, todo_id)
    except StudyPlanError as e:
        raise to_http_exception(e)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Todo not found",
        )
