"""
Exception hierarchy for the copilot document store.

Provides layered exception structure for store and domain errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the data-access layer
"""

from typing import Any


class CopilotStoreException(Exception):
    """Base exception for all copilot store errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidArgumentError(CopilotStoreException):
    """Raised when input validation fails (mixed partitions, malformed vectors)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid argument error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class DocumentError(CopilotStoreException):
    """Base exception for errors addressing a single stored document."""

    def __init__(
        self,
        message: str,
        container: str | None = None,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize document error.

        Args:
            message: Error message
            container: Container the document lives in
            document_id: Id of the document
            details: Additional context
        """
        details = details or {}
        if container:
            details["container"] = container
        if document_id:
            details["document_id"] = document_id
        self.container = container
        self.document_id = document_id
        super().__init__(message, details)


class NotFoundError(DocumentError):
    """Raised on point read, replace or delete of a missing id."""

    pass


class ConflictError(DocumentError):
    """Raised when creating a document whose id already exists in its partition."""

    pass


class PreconditionFailedError(ConflictError):
    """Raised when a document changed since its ETag was observed."""

    pass


class StoreUnavailableError(CopilotStoreException):
    """Raised when the store cannot be reached or fails transiently."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize store unavailable error.

        Args:
            message: Error message
            operation: Operation that failed (read, query, batch)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class PartialBootstrapFailure(CopilotStoreException):
    """Recorded (never raised) when one product fails to seed the catalog."""

    def __init__(
        self,
        product_id: str,
        product_name: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """
        Initialize partial bootstrap failure.

        Args:
            product_id: Id of the product that was not inserted
            product_name: Display name of the product
            cause: Underlying store error
        """
        details: dict[str, Any] = {"product_id": product_id}
        if product_name:
            details["product_name"] = product_name
        if cause is not None:
            details["cause"] = str(cause)
        self.product_id = product_id
        self.cause = cause
        super().__init__(f"Product not seeded: {product_name or product_id}", details)
