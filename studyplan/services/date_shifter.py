"""
Date shifter service.

Moves already persisted steps around:

- ``shift_by_days`` / ``shift_pending_for_user`` translate due dates and
  never touch ``order``
- ``shift_from_pivot`` moves steps between day-slots by rewriting ``order``
  and never touches due dates
- ``reschedule_pending`` re-runs day bucketing so due dates follow ``order``
  again after a pivot shift

Shift operations accept an optional idempotency key. A key that is already in
the activity log short-circuits the call: nothing is applied again and the
current rows are returned. Reusing a key for a different call is rejected.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from studyplan.core.exceptions import NotFoundError, ValidationError
from studyplan.core.logger import setup_logger
from studyplan.interfaces.activity_repository import IActivityRepository
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.activity import ActivityLogCreate
from studyplan.models.enums import ActivityType, TodoStatus
from studyplan.models.todo import Todo
from studyplan.services.day_bucketing import bucket_steps
from studyplan.services.plan_access import authorize_plan
from studyplan.utils.datetime_utils import ensure_utc

logger = setup_logger(__name__)


def _require_int(name: str, value) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    return value


class DateShifterService:
    """Bulk adjustments of persisted plan steps."""

    def __init__(
        self,
        plan_repo: IPlanRepository,
        todo_repo: ITodoRepository,
        activity_repo: Optional[IActivityRepository] = None,
    ):
        self.plan_repo = plan_repo
        self.todo_repo = todo_repo
        self.activity_repo = activity_repo

    async def shift_by_days(
        self,
        user_id: str,
        plan_id: UUID,
        days: int,
        pending_only: bool = True,
        idempotency_key: Optional[str] = None,
    ) -> list[Todo]:
        """
        Translate due dates of one plan's steps by ``days`` (negative allowed).

        Args:
            user_id: Caller, must own the plan
            plan_id: Plan ID
            days: Signed whole-day delta
            pending_only: Only move pending steps
            idempotency_key: Optional retry token

        Returns:
            The shifted steps (or, on a repeated key, the plan's matching steps)

        Raises:
            ValidationError: Non-integer days, or a key reused with other arguments
        """
        _require_int("days", days)
        await authorize_plan(self.plan_repo, user_id, plan_id)
        status = TodoStatus.PENDING if pending_only else None

        if await self._already_applied(
            user_id,
            idempotency_key,
            ActivityType.STEPS_SHIFTED,
            plan_id,
            {"days": days, "pending_only": pending_only},
        ):
            return await self.todo_repo.list_by_plan(plan_id, status=status)

        shifted = await self.todo_repo.shift_due_dates([plan_id], days, status=status)
        logger.info(f"Shifted {len(shifted)} steps of plan {plan_id} by {days} days")
        await self._record(
            user_id,
            ActivityType.STEPS_SHIFTED,
            f"Shifted {len(shifted)} steps by {days} days",
            plan_id=plan_id,
            idempotency_key=idempotency_key,
            payload={"days": days, "pending_only": pending_only, "count": len(shifted)},
        )
        return shifted

    async def shift_pending_for_user(
        self,
        user_id: str,
        days: int,
        plan_id: Optional[UUID] = None,
        idempotency_key: Optional[str] = None,
    ) -> list[Todo]:
        """
        Translate every pending step the user owns, or only one plan's.

        Raises:
            NotFoundError: ``plan_id`` given but missing
            UnauthorizedError: ``plan_id`` given but owned by someone else
            ValidationError: Idempotency key reused with other arguments
        """
        _require_int("days", days)
        if plan_id is not None:
            await authorize_plan(self.plan_repo, user_id, plan_id)
            plan_ids = [plan_id]
        else:
            plan_ids = await self.plan_repo.list_ids(user_id)

        if await self._already_applied(
            user_id, idempotency_key, ActivityType.STEPS_SHIFTED, plan_id, {"days": days}
        ):
            return await self.todo_repo.list_by_plans(plan_ids, status=TodoStatus.PENDING)

        shifted = await self.todo_repo.shift_due_dates(plan_ids, days, status=TodoStatus.PENDING)
        logger.info(
            f"Shifted {len(shifted)} pending steps across {len(plan_ids)} plans "
            f"by {days} days for user {user_id}"
        )
        await self._record(
            user_id,
            ActivityType.STEPS_SHIFTED,
            f"Shifted {len(shifted)} pending steps by {days} days",
            plan_id=plan_id,
            idempotency_key=idempotency_key,
            payload={"days": days, "plans": len(plan_ids), "count": len(shifted)},
        )
        return shifted

    async def shift_from_pivot(
        self,
        user_id: str,
        plan_id: UUID,
        pivot_todo_id: UUID,
        shift_by: int,
        idempotency_key: Optional[str] = None,
    ) -> list[Todo]:
        """
        Add ``shift_by`` to the order of the pivot step and every step after it.

        Steps are ranked by (order, insertion sequence). Due dates stay as
        they are; call ``reschedule_pending`` to re-bucket.

        Returns:
            All of the plan's steps after the shift, in their new order

        Raises:
            NotFoundError: The pivot is not a step of this plan
        """
        _require_int("shift_by", shift_by)
        await authorize_plan(self.plan_repo, user_id, plan_id)
        todos = await self.todo_repo.list_by_plan(plan_id)

        pivot_index = next(
            (index for index, todo in enumerate(todos) if todo.id == pivot_todo_id), None
        )
        if pivot_index is None:
            raise NotFoundError("Todo not found")

        if await self._already_applied(
            user_id,
            idempotency_key,
            ActivityType.STEPS_SHIFTED_FROM_PIVOT,
            plan_id,
            {"pivot_todo_id": str(pivot_todo_id), "shift_by": shift_by},
        ):
            return todos

        moved = todos[pivot_index:]
        await self.todo_repo.set_orders(
            plan_id, {todo.id: todo.order + shift_by for todo in moved}
        )
        logger.info(
            f"Shifted order of {len(moved)} steps of plan {plan_id} by {shift_by} "
            f"from pivot {pivot_todo_id}"
        )
        await self._record(
            user_id,
            ActivityType.STEPS_SHIFTED_FROM_PIVOT,
            f"Moved {len(moved)} steps by {shift_by} slots",
            plan_id=plan_id,
            idempotency_key=idempotency_key,
            payload={
                "pivot_todo_id": str(pivot_todo_id),
                "shift_by": shift_by,
                "count": len(moved),
            },
        )
        return await self.todo_repo.list_by_plan(plan_id)

    async def reschedule_pending(
        self,
        user_id: str,
        plan_id: UUID,
        start_date: Optional[datetime] = None,
    ) -> list[Todo]:
        """
        Recompute due dates of the plan's pending steps from their orders.

        Args:
            user_id: Caller, must own the plan
            plan_id: Plan ID
            start_date: Day 0 (default: the plan's start date)

        Returns:
            The rescheduled steps, ascending by order
        """
        plan = await authorize_plan(self.plan_repo, user_id, plan_id)
        pending = await self.todo_repo.list_by_plan(plan_id, status=TodoStatus.PENDING)
        if not pending:
            return []

        start = ensure_utc(start_date) or plan.start_date
        due_dates = {todo.id: due for todo, due in bucket_steps(pending, start)}
        await self.todo_repo.set_due_dates(plan_id, due_dates)
        logger.info(f"Rescheduled {len(pending)} pending steps of plan {plan_id}")
        await self._record(
            user_id,
            ActivityType.STEPS_RESCHEDULED,
            f"Rescheduled {len(pending)} pending steps",
            plan_id=plan_id,
            payload={"start_date": start.isoformat(), "count": len(pending)},
        )
        return await self.todo_repo.list_by_plan(plan_id, status=TodoStatus.PENDING)

    async def _already_applied(
        self,
        user_id: str,
        idempotency_key: Optional[str],
        activity_type: ActivityType,
        plan_id: Optional[UUID],
        arguments: dict,
    ) -> bool:
        """
        Whether this exact call already ran under ``idempotency_key``.

        Raises:
            ValidationError: The key was already used for another call
        """
        if not idempotency_key or not self.activity_repo:
            return False
        entry = await self.activity_repo.get_by_idempotency_key(user_id, idempotency_key)
        if entry is None:
            return False

        same_call = (
            entry.activity_type == activity_type
            and entry.plan_id == plan_id
            and all(entry.payload.get(name) == value for name, value in arguments.items())
        )
        if not same_call:
            logger.warning(
                f"Idempotency key {idempotency_key} reused by user {user_id} "
                f"with different arguments"
            )
            raise ValidationError(
                "Idempotency key reused with different arguments",
                details={"idempotency_key": idempotency_key},
            )
        logger.info(f"Skipping shift already applied under key {idempotency_key}")
        return True

    async def _record(
        self,
        user_id: str,
        activity_type: ActivityType,
        description: str,
        plan_id: Optional[UUID] = None,
        idempotency_key: Optional[str] = None,
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
                idempotency_key=idempotency_key,
                payload=payload or {},
            ),
        )
