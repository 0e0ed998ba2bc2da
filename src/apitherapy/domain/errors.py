"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class PreconditionViolationError(DomainError):
    """An operation was invoked before the session reached the required phase."""

    def __init__(self, operation: str, requirement: str) -> None:
        message = f"Cannot {operation}: {requirement}"
        super().__init__(
            message,
            "PRECONDITION_VIOLATION",
            {"operation": operation, "requirement": requirement},
        )


class SessionFinalizedError(DomainError):
    """The session has been finalized and only accepts a reset."""

    def __init__(self, operation: str) -> None:
        message = f"Cannot {operation}: the session is finalized, start a new session first"
        super().__init__(message, "SESSION_FINALIZED", {"operation": operation})


class ResetNotConfirmedError(DomainError):
    """A destructive reset was requested without explicit confirmation."""

    def __init__(self) -> None:
        super().__init__(
            "Starting a new session clears the current patient data and must be confirmed",
            "RESET_NOT_CONFIRMED",
        )


class UnknownProtocolError(DomainError):
    """Protocol id is not part of the catalog."""

    def __init__(self, protocol_id: str) -> None:
        message = f"Protocol with ID '{protocol_id}' not found"
        super().__init__(message, "UNKNOWN_PROTOCOL", {"protocol_id": protocol_id})


class UnknownPointError(DomainError):
    """Treatment point id is not part of the catalog."""

    def __init__(self, point_id: str) -> None:
        message = f"Treatment point with ID '{point_id}' not found"
        super().__init__(message, "UNKNOWN_POINT", {"point_id": point_id})


class InvalidPatientDataError(DomainError):
    """Invalid patient data."""

    def __init__(self, field: str, value: Any) -> None:
        message = f"Invalid patient data. Field: {field}, Value: {value}"
        super().__init__(
            message, "INVALID_PATIENT_DATA", {"field": field, "value": value}
        )
