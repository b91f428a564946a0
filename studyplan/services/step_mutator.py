"""
Step mutator service.

Creates, replaces and appends plan steps, and materializes marketplace
snapshots into new plans. Every path that needs due dates goes through
``day_bucketing``; a step that already carries ``due_date`` keeps it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from studyplan.core.config import Settings, get_settings
from studyplan.core.exceptions import BusinessLogicError, NotFoundError, ValidationError
from studyplan.core.logger import setup_logger
from studyplan.interfaces.activity_repository import IActivityRepository
from studyplan.interfaces.marketplace_repository import (
    IMarketplaceRepository,
    IPlanForkRepository,
    IPurchaseRepository,
)
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.activity import ActivityLogCreate
from studyplan.models.enums import ActivityType, PlanStatus, StepDateMode, TodoStatus
from studyplan.models.plan import Plan, PlanCreate
from studyplan.models.todo import StepInput, Todo, TodoCreate
from studyplan.services.day_bucketing import bucket_steps, continue_schedule, existing_day_map
from studyplan.services.plan_access import authorize_plan, ensure_can_fork
from studyplan.utils.datetime_utils import ensure_utc, now_utc

logger = setup_logger(__name__)

StepLike = Union[StepInput, dict[str, Any]]


def coerce_steps(steps: Sequence[StepLike]) -> list[StepInput]:
    """
    Validate raw step descriptors.

    Raises:
        ValidationError: If any descriptor is malformed (missing title,
            non-integer order, ...)
    """
    result: list[StepInput] = []
    for index, step in enumerate(steps):
        if isinstance(step, StepInput):
            result.append(step)
            continue
        try:
            result.append(StepInput.model_validate(step))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid step at index {index}", details=e.errors()) from e
    return result


def to_todo_creates(scheduled: Sequence[tuple[StepInput, datetime]]) -> list[TodoCreate]:
    """Turn (step, computed due date) pairs into rows; explicit due dates win."""
    return [
        TodoCreate(
            title=step.title,
            description=step.resolved_description(),
            order=step.order,
            priority=step.priority,
            status=TodoStatus.PENDING,
            due_date=ensure_utc(step.due_date) if step.due_date else due_date,
            estimated_time=step.estimated_time,
            resources=step.resources,
        )
        for step, due_date in scheduled
    ]


class StepMutatorService:
    """Persistence operations that create or rewrite plan steps."""

    def __init__(
        self,
        plan_repo: IPlanRepository,
        todo_repo: ITodoRepository,
        marketplace_repo: Optional[IMarketplaceRepository] = None,
        purchase_repo: Optional[IPurchaseRepository] = None,
        fork_repo: Optional[IPlanForkRepository] = None,
        activity_repo: Optional[IActivityRepository] = None,
        settings: Optional[Settings] = None,
    ):
        self.plan_repo = plan_repo
        self.todo_repo = todo_repo
        self.marketplace_repo = marketplace_repo
        self.purchase_repo = purchase_repo
        self.fork_repo = fork_repo
        self.activity_repo = activity_repo
        self.settings = settings or get_settings()

    async def create_with_steps(
        self,
        user_id: str,
        plan: PlanCreate,
        steps: Sequence[StepLike],
        start_date: Optional[datetime] = None,
    ) -> Plan:
        """
        Create an active plan and all of its steps atomically.

        Args:
            user_id: Owner user ID
            plan: Plan fields
            steps: Step descriptors; orders are kept verbatim
            start_date: Day 0 of the schedule (default: plan.start_date, then now)

        Returns:
            The new plan
        """
        step_inputs = coerce_steps(steps)
        start = ensure_utc(start_date or plan.start_date) or now_utc()
        todos = to_todo_creates(bucket_steps(step_inputs, start))

        plan_data = plan.model_copy(
            update={
                "status": PlanStatus.ACTIVE,
                "start_date": start,
                "estimated_duration": (
                    plan.estimated_duration
                    if plan.estimated_duration is not None
                    else len(step_inputs)
                ),
                "description": plan.description or "",
            }
        )
        created = await self.plan_repo.create(user_id, plan_data, todos)
        logger.info(f"Created plan {created.id} with {len(todos)} steps for user {user_id}")
        await self._log(
            user_id,
            ActivityType.PLAN_CREATED,
            f"Created plan '{created.title}'",
            plan_id=created.id,
            payload={"steps": len(todos)},
        )
        return created

    async def replace_pending_steps(
        self,
        user_id: str,
        plan_id: UUID,
        steps: Sequence[StepLike],
        date_mode: Optional[StepDateMode] = None,
    ) -> list[Todo]:
        """
        Swap every pending step of the plan for ``steps``.

        Non-pending steps are kept as they are.

        Raises:
            NotFoundError: Plan does not exist
            UnauthorizedError: Caller does not own the plan
            ValidationError: A step descriptor is malformed
        """
        plan = await authorize_plan(self.plan_repo, user_id, plan_id)
        step_inputs = coerce_steps(steps)
        mode = self._resolve_mode(date_mode)

        if mode == StepDateMode.CONTINUE:
            existing = await self.todo_repo.list_by_plan(plan_id)
            surviving = [t for t in existing if t.status != TodoStatus.PENDING]
            scheduled = continue_schedule(existing_day_map(surviving), step_inputs, plan.start_date)
        else:
            scheduled = self._schedule_now(step_inputs)

        created = await self.todo_repo.replace_pending(plan_id, to_todo_creates(scheduled))
        logger.info(
            f"Replaced pending steps of plan {plan_id} with {len(created)} steps ({mode.value})"
        )
        await self._log(
            user_id,
            ActivityType.STEPS_REPLACED,
            f"Replaced pending steps with {len(created)} steps",
            plan_id=plan_id,
            payload={"count": len(created), "date_mode": mode.value},
        )
        return created

    async def append_steps(
        self,
        user_id: str,
        plan_id: UUID,
        steps: Sequence[StepLike],
        date_mode: Optional[StepDateMode] = None,
    ) -> list[Todo]:
        """
        Add steps to a plan without touching the existing ones.

        Raises:
            NotFoundError: Plan does not exist
            UnauthorizedError: Caller does not own the plan
            ValidationError: A step descriptor is malformed
        """
        plan = await authorize_plan(self.plan_repo, user_id, plan_id)
        step_inputs = coerce_steps(steps)
        mode = self._resolve_mode(date_mode)

        if mode == StepDateMode.CONTINUE:
            existing = await self.todo_repo.list_by_plan(plan_id)
            scheduled = continue_schedule(existing_day_map(existing), step_inputs, plan.start_date)
        else:
            scheduled = self._schedule_now(step_inputs)

        created = await self.todo_repo.create_many(plan_id, to_todo_creates(scheduled))
        logger.info(f"Appended {len(created)} steps to plan {plan_id} ({mode.value})")
        await self._log(
            user_id,
            ActivityType.STEPS_APPENDED,
            f"Appended {len(created)} steps",
            plan_id=plan_id,
            payload={"count": len(created), "date_mode": mode.value},
        )
        return created

    async def fork_snapshot(self, user_id: str, marketplace_plan_id: UUID) -> Plan:
        """
        Remix a marketplace listing into a new active plan owned by ``user_id``.

        Steps are bucketed again starting today.

        Raises:
            NotFoundError: Listing does not exist
            PurchaseRequiredError: Paid listing without a purchase record
        """
        if not self.marketplace_repo or not self.purchase_repo:
            raise BusinessLogicError("Marketplace is not configured")

        listing = await self.marketplace_repo.get(marketplace_plan_id)
        if not listing:
            raise NotFoundError(f"Marketplace plan {marketplace_plan_id} not found")
        await ensure_can_fork(self.purchase_repo, user_id, listing)

        snapshot = listing.snapshot
        steps = [
            StepInput(
                title=step.title,
                description=step.description,
                order=step.order,
                priority=step.priority,
                estimated_time=step.estimated_time,
                resources=step.resources,
            )
            for step in snapshot.todos
        ]
        start = now_utc()
        plan = PlanCreate(
            title=f"{snapshot.title}{self.settings.REMIX_TITLE_SUFFIX}",
            description=snapshot.description or "",
            difficulty=snapshot.difficulty,
            estimated_duration=snapshot.estimated_duration,
            status=PlanStatus.ACTIVE,
            is_forked=True,
            start_date=start,
        )
        created = await self.plan_repo.create(
            user_id, plan, to_todo_creates(bucket_steps(steps, start))
        )

        if self.fork_repo:
            await self.fork_repo.create(user_id, listing.source_plan_id, created.id)
        await self.marketplace_repo.increment_installs(listing.id)
        logger.info(f"User {user_id} forked marketplace plan {listing.id} into {created.id}")
        await self._log(
            user_id,
            ActivityType.PLAN_FORKED,
            f"Forked '{snapshot.title}'",
            plan_id=created.id,
            payload={
                "marketplace_plan_id": str(listing.id),
                "original_plan_id": str(listing.source_plan_id),
            },
        )
        return created

    async def fork_plan(self, user_id: str, plan_id: UUID) -> Plan:
        """
        Copy one of the user's own plans into a new draft.

        Every step of the source is copied as pending and re-dated from today.
        """
        source = await authorize_plan(self.plan_repo, user_id, plan_id)
        todos = await self.todo_repo.list_by_plan(plan_id)
        steps = [
            StepInput(
                title=todo.title,
                description=todo.description,
                order=todo.order,
                priority=todo.priority,
                estimated_time=todo.estimated_time,
                resources=todo.resources,
            )
            for todo in todos
        ]
        start = now_utc()
        plan = PlanCreate(
            title=f"{source.title}{self.settings.FORK_TITLE_SUFFIX}",
            description=source.description,
            difficulty=source.difficulty,
            estimated_duration=source.estimated_duration,
            chat_id=source.chat_id,
            status=PlanStatus.DRAFT,
            is_forked=True,
            start_date=start,
        )
        created = await self.plan_repo.create(
            user_id, plan, to_todo_creates(bucket_steps(steps, start))
        )
        if self.fork_repo:
            await self.fork_repo.create(user_id, source.id, created.id)
        logger.info(f"User {user_id} forked plan {source.id} into {created.id}")
        await self._log(
            user_id,
            ActivityType.PLAN_FORKED,
            f"Forked '{source.title}'",
            plan_id=created.id,
            payload={"original_plan_id": str(source.id)},
        )
        return created

    def _resolve_mode(self, date_mode: Optional[StepDateMode]) -> StepDateMode:
        if date_mode is not None:
            return date_mode
        return StepDateMode(self.settings.DEFAULT_STEP_DATE_MODE)

    @staticmethod
    def _schedule_now(steps: Sequence[StepInput]) -> list[tuple[StepInput, datetime]]:
        now = now_utc()
        return [(step, now) for step in steps]

    async def _log(
        self,
        user_id: str,
        activity_type: ActivityType,
        description: str,
        plan_id: Optional[UUID] = None,
        payload: Optional[dict] = None,
    ) -> None:
        if not self.activity_repo:
            return
        await self.activity_repo.create(
            user_id,
            ActivityLogCreate(
                plan_id=plan_id,
                activity_type=activity_type,
                description=description,
                payload=payload or {},
            ),
        )
