"""
Authentication provider interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated caller."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IAuthProvider(ABC):
    """Abstract interface for bearer token verification."""

    @abstractmethod
    async def verify_token(self, token: str) -> User:
        """
        Verify a bearer token.

        Args:
            token: Raw token from the Authorization header

        Returns:
            The authenticated user

        Raises:
            AuthorizationError: If the token is invalid
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether requests must carry a token."""
        pass
