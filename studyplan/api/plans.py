"""
Plans API endpoints.

CRUD for plans plus the step scheduling operations that act on one plan.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from studyplan.api.deps import (
    ActivityRepo,
    CurrentUser,
    DateShifter,
    PlanRepo,
    StepMutator,
    TodoRepo,
    Todos,
    to_http_exception,
)
from studyplan.core.exceptions import StudyPlanError
from studyplan.models.activity import ActivityLog
from studyplan.models.enums import PlanStatus
from studyplan.models.plan import (
    Plan,
    PlanCreate,
    PlanStatusUpdate,
    PlanUpdate,
    PlanWithStepsCreate,
    PlanWithTodos,
)
from studyplan.models.schedule import (
    RescheduleRequest,
    ShiftDaysRequest,
    ShiftFromPivotRequest,
    StepsRequest,
)
from studyplan.models.todo import Todo, TodoCount
from studyplan.services.plan_access import authorize_plan

router = APIRouter()


@router.post("", response_model=Plan, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan: PlanWithStepsCreate,
    user: CurrentUser,
    repo: PlanRepo,
    mutator: StepMutator,
):
    """Create a plan; with steps it starts active and scheduled."""
    fields = plan.model_dump(exclude={"steps"})
    try:
        if plan.steps:
            return await mutator.create_with_steps(
                user.id, PlanCreate(**fields), plan.steps, start_date=plan.start_date
            )
        return await repo.create(user.id, PlanCreate(**fields))
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("", response_model=list[Plan])
async def list_plans(
    user: CurrentUser,
    repo: PlanRepo,
    status_filter: Optional[PlanStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """List plans, newest first."""
    return await repo.list(user.id, status=status_filter, limit=limit, offset=offset)


@router.get("/count")
async def count_plans(user: CurrentUser, repo: PlanRepo):
    """Count the caller's plans."""
    return {"count": await repo.count(user.id)}


@router.get("/{plan_id}", response_model=Plan)
async def get_plan(plan_id: UUID, user: CurrentUser, repo: PlanRepo):
    """Get a plan by ID."""
    try:
        return await authorize_plan(repo, user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("/{plan_id}/full", response_model=PlanWithTodos)
async def get_plan_with_todos(
    plan_id: UUID,
    user: CurrentUser,
    repo: PlanRepo,
    todo_repo: TodoRepo,
):
    """Get a plan with all of its todos."""
    try:
        plan = await authorize_plan(repo, user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)
    todos = await todo_repo.list_by_plan(plan_id)
    return PlanWithTodos(**plan.model_dump(), todos=todos)


@router.get("/{plan_id}/counts", response_model=TodoCount)
async def get_todo_counts(plan_id: UUID, user: CurrentUser, todos: Todos):
    """Total/completed/pending todo counts."""
    try:
        return await todos.count(user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.patch("/{plan_id}", response_model=Plan)
async def update_plan(
    plan_id: UUID,
    update: PlanUpdate,
    user: CurrentUser,
    repo: PlanRepo,
):
    """Update a plan."""
    try:
        await authorize_plan(repo, user.id, plan_id)
        return await repo.update(user.id, plan_id, update)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.patch("/{plan_id}/status", response_model=Plan)
async def update_plan_status(
    plan_id: UUID,
    body: PlanStatusUpdate,
    user: CurrentUser,
    repo: PlanRepo,
):
    """Change only the plan status."""
    try:
        await authorize_plan(repo, user.id, plan_id)
        return await repo.update(user.id, plan_id, PlanUpdate(status=body.status))
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(plan_id: UUID, user: CurrentUser, repo: PlanRepo):
    """Delete a plan and its todos."""
    try:
        await authorize_plan(repo, user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)
    deleted = await repo.delete(user.id, plan_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Plan {plan_id} not found",
        )


@router.post("/{plan_id}/fork", response_model=Plan, status_code=status.HTTP_201_CREATED)
async def fork_plan(plan_id: UUID, user: CurrentUser, mutator: StepMutator):
    """Copy one of the caller's plans into a new draft."""
    try:
        return await mutator.fork_plan(user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.put("/{plan_id}/steps", response_model=list[Todo])
async def replace_pending_steps(
    plan_id: UUID,
    body: StepsRequest,
    user: CurrentUser,
    mutator: StepMutator,
):
    """Replace the plan's pending steps."""
    try:
        return await mutator.replace_pending_steps(
            user.id, plan_id, body.steps, date_mode=body.date_mode
        )
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/{plan_id}/steps", response_model=list[Todo], status_code=status.HTTP_201_CREATED)
async def append_steps(
    plan_id: UUID,
    body: StepsRequest,
    user: CurrentUser,
    mutator: StepMutator,
):
    """Append steps to the plan."""
    try:
        return await mutator.append_steps(user.id, plan_id, body.steps, date_mode=body.date_mode)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/{plan_id}/shift", response_model=list[Todo])
async def shift_plan_days(
    plan_id: UUID,
    body: ShiftDaysRequest,
    user: CurrentUser,
    shifter: DateShifter,
):
    """Move the plan's (pending) due dates by whole days."""
    try:
        return await shifter.shift_by_days(
            user.id,
            plan_id,
            body.days,
            pending_only=body.pending_only,
            idempotency_key=body.idempotency_key,
        )
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/{plan_id}/shift-from", response_model=list[Todo])
async def shift_from_pivot(
    plan_id: UUID,
    body: ShiftFromPivotRequest,
    user: CurrentUser,
    shifter: DateShifter,
):
    """Add shift_by to the order of a todo and every todo after it."""
    try:
        return await shifter.shift_from_pivot(
            user.id,
            plan_id,
            body.todo_id,
            body.shift_by,
            idempotency_key=body.idempotency_key,
        )
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.post("/{plan_id}/reschedule", response_model=list[Todo])
async def reschedule_pending(
    plan_id: UUID,
    body: RescheduleRequest,
    user: CurrentUser,
    shifter: DateShifter,
):
    """Recompute pending due dates from their orders."""
    try:
        return await shifter.reschedule_pending(user.id, plan_id, start_date=body.start_date)
    except StudyPlanError as e:
        raise to_http_exception(e)


@router.get("/{plan_id}/activity", response_model=list[ActivityLog])
async def list_plan_activity(
    plan_id: UUID,
    user: CurrentUser,
    repo: PlanRepo,
    activity_repo: ActivityRepo,
    limit: int = Query(50, ge=1, le=500),
):
    """Recent activity entries for a plan."""
    try:
        await authorize_plan(repo, user.id, plan_id)
    except StudyPlanError as e:
        raise to_http_exception(e)
    return await activity_repo.list(user.id, plan_id=plan_id, limit=limit)
