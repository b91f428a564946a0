from __future__ import annotations

from uuid import UUID

from studyplan.core.exceptions import NotFoundError, PurchaseRequiredError, UnauthorizedError
from studyplan.interfaces.marketplace_repository import IPurchaseRepository
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.models.marketplace import MarketplacePlan
from studyplan.models.plan import Plan
from studyplan.models.todo import Todo


async def authorize_plan(plan_repo: IPlanRepository, user_id: str, plan_id: UUID) -> Plan:
    """Load a plan and make sure ``user_id`` owns it."""
    plan = await plan_repo.get_by_id(plan_id)
    if not plan:
        raise NotFoundError(f"Plan {plan_id} not found")
    if plan.user_id != user_id:
        raise UnauthorizedError()
    return plan


async def authorize_todo(
    plan_repo: IPlanRepository,
    todo_repo: ITodoRepository,
    user_id: str,
    todo_id: UUID,
) -> tuple[Plan, Todo]:
    todo = await todo_repo.get(todo_id)
    if not todo:
        raise NotFoundError("Todo not found")
    plan = await authorize_plan(plan_repo, user_id, todo.plan_id)
    return plan, todo


async def ensure_can_fork(
    purchase_repo: IPurchaseRepository,
    user_id: str,
    listing: MarketplacePlan,
) -> None:
    """Free listings and the author's own listing skip the purchase check."""
    if listing.is_free or listing.author_id == user_id:
        return
    purchase = await purchase_repo.get(user_id, listing.id)
    if not purchase:
        raise PurchaseRequiredError()
