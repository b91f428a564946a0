"""
Marketplace repository interface.

Defines the contract for published plan listings, the purchases that unlock
paid listings, and fork attribution records.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from studyplan.models.enums import MarketplaceVisibility
from studyplan.models.marketplace import (
    MarketplacePlan,
    MarketplaceSnapshot,
    PlanFork,
    Purchase,
)


class IMarketplaceRepository(ABC):
    """Abstract interface for marketplace listings."""

    @abstractmethod
    async def get(self, marketplace_plan_id: UUID) -> Optional[MarketplacePlan]:
        """
        Get a listing by ID.

        Args:
            marketplace_plan_id: Listing ID

        Returns:
            MarketplacePlan if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_source_plan(self, source_plan_id: UUID) -> Optional[MarketplacePlan]:
        """Get the listing published from a plan, if any."""
        pass

    @abstractmethod
    async def publish(
        self,
        author_id: str,
        source_plan_id: UUID,
        snapshot: MarketplaceSnapshot,
        visibility: Optional[MarketplaceVisibility] = None,
        tags: Optional[list[str]] = None,
        price: Optional[float] = None,
        is_free: Optional[bool] = None,
    ) -> MarketplacePlan:
        """
        Create the listing for a plan, or overwrite its snapshot.

        Re-publishing an already listed plan bumps ``version``; listing
        settings that are not given keep their current values.

        Args:
            author_id: Plan owner
            source_plan_id: Published plan
            snapshot: Content copy
            visibility: Listing visibility
            tags: Listing tags
            price: Listing price
            is_free: Whether forking needs a purchase

        Returns:
            Stored listing
        """
        pass

    @abstractmethod
    async def increment_installs(self, marketplace_plan_id: UUID) -> MarketplacePlan:
        """
        Count one more install of the listing.

        Raises:
            NotFoundError: If listing not found
        """
        pass


class IPurchaseRepository(ABC):
    """Abstract interface for purchase records."""

    @abstractmethod
    async def create(self, user_id: str, marketplace_plan_id: UUID, price: float = 0) -> Purchase:
        """Record a purchase."""
        pass

    @abstractmethod
    async def get(self, user_id: str, marketplace_plan_id: UUID) -> Optional[Purchase]:
        """Get the user's purchase of a listing, if any."""
        pass


class IPlanForkRepository(ABC):
    """Abstract interface for fork attribution records."""

    @abstractmethod
    async def create(self, user_id: str, original_plan_id: UUID, forked_plan_id: UUID) -> PlanFork:
        """Record that ``forked_plan_id`` was copied from ``original_plan_id``."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[PlanFork]:
        """List the user's forks, newest first."""
        pass
