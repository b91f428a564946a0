"""
Planner agent tools.

Tools the chat assistant uses to create learning plans and move their steps
around. Every tool answers with ``{"success": True, ...}`` or
``{"success": False, "error": message}``; failures never raise into the agent.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Type, TypeVar
from uuid import UUID

from google.adk.tools import FunctionTool
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from studyplan.core.exceptions import StudyPlanError
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.enums import PlanStatus, StepDateMode
from studyplan.models.plan import PlanCreate
from studyplan.models.todo import StepInput
from studyplan.services.date_shifter import DateShifterService
from studyplan.services.step_mutator import StepMutatorService
from studyplan.services.todo_service import TodoService

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


# ===========================================
# Tool Input Models
# ===========================================


class CreatePlannerInput(BaseModel):
    """Input for create_planner tool."""

    title: str = Field(..., min_length=1, description="Plan title")
    description: Optional[str] = Field(None, description="What the learner will achieve")
    difficulty: Optional[str] = Field(
        None, description="beginner/intermediate/advanced (or easy/medium/hard)"
    )
    estimated_duration: Optional[int] = Field(None, ge=0, description="Estimated days")
    chat_id: Optional[str] = Field(None, description="Chat the plan was generated in")
    start_date: Optional[datetime] = Field(None, description="First day (ISO format), default now")
    steps: list[StepInput] = Field(default_factory=list, description="Plan steps")


class ReadPlannersInput(BaseModel):
    """Input for read_planners tool."""

    status: Optional[PlanStatus] = Field(None, description="draft/active/completed/archived")
    include_todos: bool = Field(True, description="Include each plan's steps")
    limit: int = Field(20, ge=1, le=100)


class ShiftPlannerStepsInput(BaseModel):
    """Input for shift_planner_steps tool."""

    days: int = Field(..., description="Days to move pending steps (negative = earlier)")
    plan_id: Optional[UUID] = Field(None, description="Plan ID; omit to shift every plan")
    idempotency_key: Optional[str] = Field(None, max_length=200)


class ShiftStepsFromInput(BaseModel):
    """Input for shift_steps_from tool."""

    plan_id: UUID = Field(..., description="Plan ID")
    todo_id: UUID = Field(..., description="First step to move")
    shift_by: int = Field(..., description="Day-slots to add to the order")
    reschedule: bool = Field(
        False, description="Recompute pending due dates from the new orders afterwards"
    )
    idempotency_key: Optional[str] = Field(None, max_length=200)


class EditPlannerStepsInput(BaseModel):
    """Input for edit_planner_steps and append_steps_to_planner tools."""

    plan_id: UUID = Field(..., description="Plan ID")
    steps: list[StepInput] = Field(default_factory=list, description="Steps to write")
    date_mode: Optional[StepDateMode] = Field(
        None, description="now = due immediately, continue = schedule after existing days"
    )


def _success(**payload) -> dict:
    return {"success": True, **payload}


def _failure(message: str) -> dict:
    return {"success": False, "error": message}


def _parse(model_cls: Type[InputT], input_data: dict) -> tuple[Optional[InputT], Optional[dict]]:
    try:
        return model_cls.model_validate(input_data or {}), None
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid input: {location}: {first.get('msg')}" if location else "Invalid input"
        logger.warning(f"Rejected tool input: {message}")
        return None, _failure(message)


# ===========================================
# Tool Functions
# ===========================================


async def create_planner(
    user_id: str,
    mutator: StepMutatorService,
    input_data: CreatePlannerInput,
) -> dict:
    """
    Create a plan together with its steps.

    Args:
        user_id: User ID
        mutator: Step mutator service
        input_data: Plan fields and steps

    Returns:
        {"success", "plan_id", "plan"} or {"success": False, "error"}
    """
    try:
        plan = await mutator.create_with_steps(
            user_id,
            PlanCreate(
                title=input_data.title,
                description=input_data.description,
                difficulty=input_data.difficulty,
                estimated_duration=input_data.estimated_duration,
                chat_id=input_data.chat_id,
            ),
            input_data.steps,
            start_date=input_data.start_date,
        )
    except StudyPlanError as e:
        logger.warning(f"create_planner failed for user {user_id}: {e.message}")
        return _failure(e.message)

    return _success(
        plan_id=str(plan.id),
        plan=plan.model_dump(mode="json"),
        message=f"Created plan '{plan.title}' with {len(input_data.steps)} steps",
    )


async def read_planners(
    user_id: str,
    plan_repo: IPlanRepository,
    todo_repo: ITodoRepository,
    input_data: ReadPlannersInput,
) -> dict:
    """List the user's plans, optionally with their steps."""
    plans = await plan_repo.list(user_id, status=input_data.status, limit=input_data.limit)
    result = []
    for plan in plans:
        item = plan.model_dump(mode="json")
        if input_data.include_todos:
            todos = await todo_repo.list_by_plan(plan.id)
            item["todos"] = [todo.model_dump(mode="json") for todo in todos]
        result.append(item)
    return _success(planners=result, count=len(result))


async def shift_planner_steps(
    user_id: str,
    shifter: DateShifterService,
    input_data: ShiftPlannerStepsInput,
) -> dict:
    """Move pending steps of one plan (or of all plans) by whole days."""
    try:
        if input_data.plan_id:
            todos = await shifter.shift_by_days(
                user_id,
                input_data.plan_id,
                input_data.days,
                pending_only=True,
                idempotency_key=input_data.idempotency_key,
            )
        else:
            todos = await shifter.shift_pending_for_user(
                user_id,
                input_data.days,
                idempotency_key=input_data.idempotency_key,
            )
    except StudyPlanError as e:
        logger.warning(f"shift_planner_steps failed for user {user_id}: {e.message}")
        return _failure(e.message)

    return _success(
        shifted_count=len(todos),
        days=input_data.days,
        todos=[todo.model_dump(mode="json") for todo in todos],
    )


async def shift_steps_from(
    user_id: str,
    shifter: DateShifterService,
    input_data: ShiftStepsFromInput,
) -> dict:
    """Push a step and everything after it back by ``shift_by`` day-slots."""
    try:
        todos = await shifter.shift_from_pivot(
            user_id,
            input_data.plan_id,
            input_data.todo_id,
            input_data.shift_by,
            idempotency_key=input_data.idempotency_key,
        )
        if input_data.reschedule:
            await shifter.reschedule_pending(user_id, input_data.plan_id)
            todos = await shifter.todo_repo.list_by_plan(input_data.plan_id)
    except StudyPlanError as e:
        logger.warning(f"shift_steps_from failed for user {user_id}: {e.message}")
        return _failure(e.message)

    return _success(todos=[todo.model_dump(mode="json") for todo in todos])


async def edit_planner_steps(
    user_id: str,
    mutator: StepMutatorService,
    input_data: EditPlannerStepsInput,
) -> dict:
    """Replace the pending steps of a plan; finished steps stay."""
    try:
        todos = await mutator.replace_pending_steps(
            user_id, input_data.plan_id, input_data.steps, date_mode=input_data.date_mode
        )
    except StudyPlanError as e:
        logger.warning(f"edit_planner_steps failed for user {user_id}: {e.message}")
        return _failure(e.message)

    return _success(
        plan_id=str(input_data.plan_id),
        todos=[todo.model_dump(mode="json") for todo in todos],
    )


async def append_steps_to_planner(
    user_id: str,
    mutator: StepMutatorService,
    input_data: EditPlannerStepsInput,
) -> dict:
    """Add steps to a plan."""
    try:
        todos = await mutator.append_steps(
            user_id, input_data.plan_id, input_data.steps, date_mode=input_data.date_mode
        )
    except StudyPlanError as e:
        logger.warning(f"append_steps_to_planner failed for user {user_id}: {e.message}")
        return _failure(e.message)

    return _success(
        plan_id=str(input_data.plan_id),
        added_count=len(todos),
        todos=[todo.model_dump(mode="json") for todo in todos],
    )


async def get_today_tasks(user_id: str, todo_service: TodoService) -> dict:
    """Pending steps due today across active plans."""
    todos = await todo_service.list_today(user_id)
    return _success(
        tasks=[todo.model_dump(mode="json") for todo in todos],
        count=len(todos),
    )


# ===========================================
# ADK Tool Factories
# ===========================================


def create_planner_tool(mutator: StepMutatorService, user_id: str) -> FunctionTool:
    """Create ADK tool for creating plans."""
    async def _tool(input_data: dict) -> dict:
        """create_planner: Create a learning plan with ordered steps.

        Steps that share an ``order`` are scheduled on the same day; each new
        order value starts the next day.

        Parameters:
            title (str): Plan title (required)
            description (str, optional): Plan description
            difficulty (str, optional): beginner/intermediate/advanced, default intermediate
            estimated_duration (int, optional): Estimated days, default number of steps
            start_date (str, optional): First day (ISO format), default now
            steps (list[dict]): title, order, description, priority (high/medium/low),
                estimated_time (minutes), resources (list of URLs), notes, due_date

        Returns:
            dict: success, plan_id, plan
        """
        payload, error = _parse(CreatePlannerInput, input_data)
        if error:
            return error
        return await create_planner(user_id, mutator, payload)

    _tool.__name__ = "create_planner"
    return FunctionTool(func=_tool)


def read_planners_tool(
    plan_repo: IPlanRepository,
    todo_repo: ITodoRepository,
    user_id: str,
) -> FunctionTool:
    """Create ADK tool for reading plans."""
    async def _tool(input_data: dict) -> dict:
        """read_planners: List the user's learning plans with their steps.

        Parameters:
            status (str, optional): draft/active/completed/archived
            include_todos (bool, optional): Include steps, default true
            limit (int, optional): Max plans, default 20

        Returns:
            dict: success, planners, count
        """
        payload, error = _parse(ReadPlannersInput, input_data)
        if error:
            return error
        return await read_planners(user_id, plan_repo, todo_repo, payload)

    _tool.__name__ = "read_planners"
    return FunctionTool(func=_tool)


def shift_planner_steps_tool(shifter: DateShifterService, user_id: str) -> FunctionTool:
    """Create ADK tool for moving pending steps by days."""
    async def _tool(input_data: dict) -> dict:
        """shift_planner_steps: Move pending steps earlier or later by whole days.

        Parameters:
            days (int): Days to move (negative = earlier)
            plan_id (str, optional): Plan ID; omit to shift every plan
            idempotency_key (str, optional): Retry token; a repeat is not applied twice

        Returns:
            dict: success, shifted_count, todos
        """
        payload, error = _parse(ShiftPlannerStepsInput, input_data)
        if error:
            return error
        return await shift_planner_steps(user_id, shifter, payload)

    _tool.__name__ = "shift_planner_steps"
    return FunctionTool(func=_tool)


def shift_steps_from_tool(shifter: DateShifterService, user_id: str) -> FunctionTool:
    """Create ADK tool for pushing steps back from a pivot step."""
    async def _tool(input_data: dict) -> dict:
        """shift_steps_from: Push a step and every later step back by day-slots.

        Changes step orders only; set reschedule=true to recompute due dates.

        Parameters:
            plan_id (str): Plan ID
            todo_id (str): First step to move
            shift_by (int): Day-slots to add
            reschedule (bool, optional): Recompute pending due dates afterwards
            idempotency_key (str, optional): Retry token

        Returns:
            dict: success, todos
        """
        payload, error = _parse(ShiftStepsFromInput, input_data)
        if error:
            return error
        return await shift_steps_from(user_id, shifter, payload)

    _tool.__name__ = "shift_steps_from"
    return FunctionTool(func=_tool)


def edit_planner_steps_tool(mutator: StepMutatorService, user_id: str) -> FunctionTool:
    """Create ADK tool for replacing pending steps."""
    async def _tool(input_data: dict) -> dict:
        """edit_planner_steps: Replace all pending steps of a plan.

        Completed and in-progress steps are kept.

        Parameters:
            plan_id (str): Plan ID
            steps (list[dict]): New steps (title, order, ...)
            date_mode (str, optional): now or continue

        Returns:
            dict: success, plan_id, todos
        """
        payload, error = _parse(EditPlannerStepsInput, input_data)
        if error:
            return error
        return await edit_planner_steps(user_id, mutator, payload)

    _tool.__name__ = "edit_planner_steps"
    return FunctionTool(func=_tool)


def append_steps_to_planner_tool(mutator: StepMutatorService, user_id: str) -> FunctionTool:
    """Create ADK tool for appending steps."""
    async def _tool(input_data: dict) -> dict:
        """append_steps_to_planner: Add steps to an existing plan.

        Parameters:
            plan_id (str): Plan ID
            steps (list[dict]): Steps to add (title, order, ...)
            date_mode (str, optional): now or continue

        Returns:
            dict: success, plan_id, added_count, todos
        """
        payload, error = _parse(EditPlannerStepsInput, input_data)
        if error:
            return error
        return await append_steps_to_planner(user_id, mutator, payload)

    _tool.__name__ = "append_steps_to_planner"
    return FunctionTool(func=_tool)


def get_today_tasks_tool(todo_service: TodoService, user_id: str) -> FunctionTool:
    """Create ADK tool for today's steps."""
    async def _tool(input_data: dict) -> dict:
        """get_today_tasks: Get pending steps due today across active plans.

        Returns:
            dict: success, tasks, count
        """
        return await get_today_tasks(user_id, todo_service)

    _tool.__name__ = "get_today_tasks"
    return FunctionTool(func=_tool)
