"""
Day bucketing for plan steps.

Turns a flat list of step descriptors, each carrying an integer ``order``
(its day-slot), into calendar due dates relative to a start date:

- steps are processed in ascending ``order`` (stable, ties keep input order)
- every step sharing an order lands on the same day
- each new distinct order moves one day forward, starting at offset 0

Offsets are ranks, not values: orders [1, 1, 3] map to days [0, 0, 1].
Everything here is pure; persistence lives in the step mutator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Optional, Protocol, Sequence, TypeVar

from studyplan.core.exceptions import ValidationError
from studyplan.utils.datetime_utils import add_days, now_utc


class OrderedStep(Protocol):
    order: int


StepT = TypeVar("StepT", bound=OrderedStep)


def sort_steps(steps: Iterable[StepT]) -> list[StepT]:
    """Return a copy sorted by order; ties keep their relative order."""
    return sorted(steps, key=lambda step: step.order)


def compute_day_offsets(orders: Iterable[int]) -> dict[int, int]:
    """
    Map each distinct order value to its zero-based day offset.

    Args:
        orders: Order values in any sequence, duplicates allowed

    Returns:
        {order: day_offset}, offsets contiguous from 0
    """
    offsets: dict[int, int] = {}
    current_day = 0
    last_order: Optional[int] = None
    for order in sorted(orders):
        if order == last_order:
            continue
        if last_order is not None:
            current_day += 1
        last_order = order
        offsets[order] = current_day
    return offsets


def bucket_steps(
    steps: Sequence[StepT],
    start_date: Optional[datetime] = None,
) -> list[tuple[StepT, datetime]]:
    """
    Pair every step with its due date, in ascending order.

    Args:
        steps: Step descriptors (anything with an ``order``)
        start_date: Day 0; defaults to now. Its time of day is kept.

    Returns:
        [(step, due_date)] sorted by order
    """
    if not steps:
        return []
    start = start_date or now_utc()
    ordered = sort_steps(steps)
    offsets = compute_day_offsets(step.order for step in ordered)
    return [(step, add_days(start, offsets[step.order])) for step in ordered]


def assign_due_dates(
    steps: Sequence[StepT],
    start_date: Optional[datetime] = None,
) -> list[datetime]:
    """Due dates for ``steps``, index-aligned with the input."""
    if not steps:
        return []
    start = start_date or now_utc()
    offsets = compute_day_offsets(step.order for step in steps)
    return [add_days(start, offsets[step.order]) for step in steps]


def existing_day_map(todos: Iterable) -> dict[int, datetime]:
    """
    Order -> due date already used by persisted todos.

    The first todo seen for an order (by order, then insertion) wins.
    """
    days: dict[int, datetime] = {}
    for todo in sorted(todos, key=lambda t: (t.order, getattr(t, "seq", 0))):
        days.setdefault(todo.order, todo.due_date)
    return days


def continue_schedule(
    existing_days: Mapping[int, datetime],
    steps: Sequence[StepT],
    anchor: datetime,
) -> list[tuple[StepT, datetime]]:
    """
    Bucket new steps onto an existing schedule without moving it.

    Steps whose order already has a day join that day. Unseen orders above
    the highest scheduled order are bucketed by rank onto the days following
    the latest existing day, or from ``anchor`` when nothing is scheduled yet.

    An unseen order below the highest scheduled order has no free day that
    keeps the schedule ascending, so it is rejected rather than squeezed in.
    Callers that want it should reschedule the plan instead.

    Args:
        existing_days: Output of ``existing_day_map`` for the surviving todos
        steps: New step descriptors
        anchor: Plan start date

    Returns:
        [(step, due_date)] sorted by order

    Raises:
        ValidationError: A new order falls between already scheduled orders
    """
    if not steps:
        return []
    ordered = sort_steps(steps)
    if existing_days:
        highest = max(existing_days)
        interleaved = sorted(
            {
                step.order
                for step in ordered
                if step.order not in existing_days and step.order < highest
            }
        )
        if interleaved:
            raise ValidationError(
                f"Order {interleaved[0]} falls between scheduled days; reschedule the plan instead",
                details={"orders": interleaved},
            )
        start = add_days(max(existing_days.values()), 1)
    else:
        start = anchor
    offsets = compute_day_offsets(
        step.order for step in ordered if step.order not in existing_days
    )

    result: list[tuple[StepT, datetime]] = []
    for step in ordered:
        if step.order in existing_days:
            result.append((step, existing_days[step.order]))
        else:
            result.append((step, add_days(start, offsets[step.order])))
    return result
