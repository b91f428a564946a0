"""Abstract interfaces for infrastructure abstraction."""

from studyplan.interfaces.activity_repository import IActivityRepository
from studyplan.interfaces.auth_provider import IAuthProvider
from studyplan.interfaces.marketplace_repository import (
    IMarketplaceRepository,
    IPlanForkRepository,
    IPurchaseRepository,
)
from studyplan.interfaces.plan_repository import IPlanRepository
from studyplan.interfaces.todo_repository import ITodoRepository

__all__ = [
    "IActivityRepository",
    "IAuthProvider",
    "IMarketplaceRepository",
    "IPlanForkRepository",
    "IPlanRepository",
    "IPurchaseRepository",
    "ITodoRepository",
]
