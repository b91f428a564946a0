"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class StudyPlanError(Exception):
    """Base exception for studyplan."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(StudyPlanError):
    """Resource not found."""

    pass


class ValidationError(StudyPlanError):
    """Malformed input (step descriptors, shift arguments, ...)."""

    pass


class AuthorizationError(StudyPlanError):
    """Authorization failed."""

    pass


class UnauthorizedError(AuthorizationError):
    """Caller does not own the referenced plan."""

    def __init__(self, message: str = "Unauthorized", details: Optional[Any] = None):
        super().__init__(message, details)


class PurchaseRequiredError(AuthorizationError):
    """Fork attempted on a paid marketplace plan without a purchase record."""

    def __init__(
        self,
        message: str = "Purchase required for this plan",
        details: Optional[Any] = None,
    ):
        super().__init__(message, details)


class InfrastructureError(StudyPlanError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class BusinessLogicError(StudyPlanError):
    """Business logic constraint violation."""

    pass
