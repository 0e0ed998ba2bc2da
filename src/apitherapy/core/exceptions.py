"""
Exception handling for the Apitherapy Care backend.

This module provides custom exception classes for the infrastructure
layers of the application (configuration, storage, database, external
services). Business rule violations live in ``domain.errors``.
"""

from typing import Any, Dict, Optional


class ApitherapyException(Exception):
    """Base exception class for the Apitherapy Care backend."""

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


class ConfigurationError(ApitherapyException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "CONFIG_ERROR", details)


class DatabaseError(ApitherapyException):
    """Raised when there's a database operation error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "DATABASE_ERROR", details)


class SessionStorageError(ApitherapyException):
    """Raised when the durable session slot cannot be read, written or removed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "SESSION_STORAGE_ERROR", details)


class MigrationCommitError(ApitherapyException):
    """Raised when a migration batch fails to commit. Aborts the whole run."""

    def __init__(
        self,
        batch_number: int,
        operation_count: int,
        cause: Exception,
    ) -> None:
        self.batch_number = batch_number
        self.operation_count = operation_count
        self.cause = cause
        message = (
            f"Commit of batch {batch_number} ({operation_count} operations) failed: {cause}"
        )
        super().__init__(
            message,
            "MIGRATION_COMMIT_ERROR",
            {
                "batch_number": batch_number,
                "operation_count": operation_count,
                "cause": type(cause).__name__,
            },
        )


class ExternalServiceError(ApitherapyException):
    """Raised when there's an external service error."""

    def __init__(
        self, service: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.service = service
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, "EXTERNAL_SERVICE_ERROR", details)


class OpenAIError(ExternalServiceError):
    """Raised when there's an Azure OpenAI API error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("OpenAI", message, details)
