# backend/classbook/core/exceptions.py
"""
Domain-specific exceptions for the classbook scheduling engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every exception carries a stable ``code``; the message attached to a
code is fixed so that store or driver error text never reaches clients.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_payload())


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message or "An error occurred processing your request",
            code=code,
            details=details,
        )


# Specific business exceptions


class TemplateNotFound(NotFoundException):
    """Raised when a class template does not exist."""

    def __init__(self, template_id: str):
        super().__init__(
            message="This recurring class could not be found",
            code="TEMPLATE_NOT_FOUND",
            details={"template_id": template_id},
        )


class TemplateExpired(DomainException):
    """Raised when an occurrence falls after the end of its recurring series."""

    status_code = status.HTTP_410_GONE

    def __init__(self, template_id: str, expired_at: datetime):
        super().__init__(
            message=f"This recurring class ended on {expired_at.date().isoformat()}",
            code="TEMPLATE_EXPIRED",
            details={"template_id": template_id, "expired_at": expired_at.isoformat()},
        )
        self.expired_at = expired_at


class OccurrenceNotInSeries(ValidationException):
    """Raised when a start time does not land on the template's recurrence."""

    def __init__(self, template_id: str, occurrence_start: datetime):
        super().__init__(
            message="The requested time is not an occurrence of this recurring class",
            code="OCCURRENCE_NOT_IN_SERIES",
            details={
                "template_id": template_id,
                "occurrence_start": occurrence_start.isoformat(),
            },
        )


class NotAParticipant(ForbiddenException):
    """Raised when a student acts on a template they do not attend."""

    def __init__(self, template_id: str, user_id: str):
        super().__init__(
            message="You are not a participant of this class",
            code="NOT_A_PARTICIPANT",
            details={"template_id": template_id, "user_id": user_id},
        )


class NotOwner(ForbiddenException):
    """Raised when a teacher acts on a class they do not own."""

    def __init__(self, resource_id: str, user_id: str):
        super().__init__(
            message="You can only manage your own classes",
            code="NOT_OWNER",
            details={"resource_id": resource_id, "user_id": user_id},
        )


class ParticipantsMissing(BusinessRuleException):
    """Raised when a template has no participants to copy."""

    def __init__(self, template_id: str):
        super().__init__(
            message="This recurring class has no participants",
            code="PARTICIPANTS_MISSING",
            details={"template_id": template_id},
        )


class ConcurrentMaterializationDetected(ConflictException):
    """
    Raised internally when another caller materialized the same occurrence first.

    Never surfaced to API clients: the materialization service converts it
    into an idempotent success.
    """

    def __init__(self, template_id: str, occurrence_start: datetime):
        super().__init__(
            message="Occurrence was materialized concurrently",
            code="CONCURRENT_MATERIALIZATION",
            details={
                "template_id": template_id,
                "occurrence_start": occurrence_start.isoformat(),
            },
        )


class ParticipantCopyFailed(ServiceException):
    """Raised when participants could not be copied; the class row is rolled back."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, template_id: str):
        super().__init__(
            message="The class could not be saved right now. Please try again.",
            code="PARTICIPANT_COPY_FAILED",
            details={"template_id": template_id, "retryable": True},
        )


class ClassNotFound(NotFoundException):
    """Raised when a materialized class does not exist."""

    def __init__(self, class_id: str):
        super().__init__(
            message="This class could not be found",
            code="CLASS_NOT_FOUND",
            details={"class_id": class_id},
        )


class ClassNotCancellable(ConflictException):
    """Raised when a class or participation is already cancelled or completed."""

    def __init__(self, class_id: str, current_status: str):
        super().__init__(
            message="This class can no longer be cancelled",
            code="CLASS_NOT_CANCELLABLE",
            details={"class_id": class_id, "status": current_status},
        )


class AmnestyNotAllowed(BusinessRuleException):
    """Raised when an amnesty request does not satisfy the policy."""

    def __init__(self, class_id: str, reason: str):
        super().__init__(
            message="Amnesty cannot be granted for this cancellation",
            code="AMNESTY_NOT_ALLOWED",
            details={"class_id": class_id, "reason": reason},
        )


class InvalidRecurrence(ValidationException):
    """Raised when a recurrence rule does not have exactly one termination mode."""

    def __init__(self, reason: str):
        super().__init__(
            message="A recurring class must end by date, by count, or repeat indefinitely",
            code="INVALID_RECURRENCE",
            details={"reason": reason},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
