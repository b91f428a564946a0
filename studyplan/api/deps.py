"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from studyplan.core.config import get_settings
from studyplan.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    StudyPlanError,
    ValidationError,
)
from studyplan.interfaces.activity_repository import IActivityRepository
from studyplan.interfaces.auth_provider import IAuthProvider, User
from studyplan.interfaces.marketplace_repository import (
    IMarketplaceRepository,
    IPlanForkRepository,
    IPurchaseRepository,
)
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository
from studyplan.services.date_shifter import DateShifterService
from studyplan.services.marketplace_service import MarketplaceService
from studyplan.services.step_mutator import StepMutatorService
from studyplan.services.todo_service import TodoService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_plan_repository() -> IPlanRepository:
    """Get plan repository instance."""
    from studyplan.infrastructure.local.plan_repository import SqlitePlanRepository
    return SqlitePlanRepository()


@lru_cache()
def get_todo_repository() -> ITodoRepository:
    """Get todo repository instance."""
    from studyplan.infrastructure.local.todo_repository import SqliteTodoRepository
    return SqliteTodoRepository()


@lru_cache()
def get_marketplace_repository() -> IMarketplaceRepository:
    """Get marketplace repository instance."""
    from studyplan.infrastructure.local.marketplace_repository import SqliteMarketplaceRepository
    return SqliteMarketplaceRepository()


@lru_cache()
def get_purchase_repository() -> IPurchaseRepository:
    """Get purchase repository instance."""
    from studyplan.infrastructure.local.marketplace_repository import SqlitePurchaseRepository
    return SqlitePurchaseRepository()


@lru_cache()
def get_plan_fork_repository() -> IPlanForkRepository:
    """Get plan fork repository instance."""
    from studyplan.infrastructure.local.marketplace_repository import SqlitePlanForkRepository
    return SqlitePlanForkRepository()


@lru_cache()
def get_activity_repository() -> IActivityRepository:
    """Get activity log repository instance."""
    from studyplan.infrastructure.local.activity_repository import SqliteActivityRepository
    return SqliteActivityRepository()


# ===========================================
# Auth Dependencies
# ===========================================


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    from studyplan.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=settings.AUTH_REQUIRED)


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    With auth disabled every request runs as ``dev_user``.
    """
    if not auth_provider.is_enabled():
        return User(id="dev_user", email="dev@example.com", display_name="Developer")

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        return await auth_provider.verify_token(token)
    except AuthorizationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

PlanRepo = Annotated[IPlanRepository, Depends(get_plan_repository)]
TodoRepo = Annotated[ITodoRepository, Depends(get_todo_repository)]
MarketplaceRepo = Annotated[IMarketplaceRepository, Depends(get_marketplace_repository)]
PurchaseRepo = Annotated[IPurchaseRepository, Depends(get_purchase_repository)]
PlanForkRepo = Annotated[IPlanForkRepository, Depends(get_plan_fork_repository)]
ActivityRepo = Annotated[IActivityRepository, Depends(get_activity_repository)]
CurrentUser = Annotated[User, Depends(get_current_user)]


# ===========================================
# Service Dependencies
# ===========================================


def get_step_mutator(
    plan_repo: PlanRepo,
    todo_repo: TodoRepo,
    marketplace_repo: MarketplaceRepo,
    purchase_repo: PurchaseRepo,
    fork_repo: PlanForkRepo,
    activity_repo: ActivityRepo,
) -> StepMutatorService:
    """Get StepMutatorService instance."""
    return StepMutatorService(
        plan_repo,
        todo_repo,
        marketplace_repo=marketplace_repo,
        purchase_repo=purchase_repo,
        fork_repo=fork_repo,
        activity_repo=activity_repo,
    )


def get_date_shifter(
    plan_repo: PlanRepo,
    todo_repo: TodoRepo,
    activity_repo: ActivityRepo,
) -> DateShifterService:
    """Get DateShifterService instance."""
    return DateShifterService(plan_repo, todo_repo, activity_repo=activity_repo)


def get_todo_service(plan_repo: PlanRepo, todo_repo: TodoRepo) -> TodoService:
    """Get TodoService instance."""
    return TodoService(plan_repo, todo_repo)


def get_marketplace_service(
    plan_repo: PlanRepo,
    todo_repo: TodoRepo,
    marketplace_repo: MarketplaceRepo,
    activity_repo: ActivityRepo,
) -> MarketplaceService:
    """Get MarketplaceService instance."""
    return MarketplaceService(plan_repo, todo_repo, marketplace_repo, activity_repo=activity_repo)


StepMutator = Annotated[StepMutatorService, Depends(get_step_mutator)]
DateShifter = Annotated[DateShifterService, Depends(get_date_shifter)]
Todos = Annotated[TodoService, Depends(get_todo_service)]
Marketplace = Annotated[MarketplaceService, Depends(get_marketplace_service)]


# ===========================================
# Error Mapping
# ===========================================


def to_http_exception(error: StudyPlanError) -> HTTPException:
    """Map a domain error onto the HTTP status the API reports for it."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, AuthorizationError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, (ValidationError, BusinessLogicError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.message)
