"""Standardized exceptions for the prefetch core module.

This module provides the exception hierarchy shared by the queue, the fetch
client, and the persistence layer.
"""


class PrefetchError(Exception):
    """Base exception for all prefetch errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize the error with a message and optional error code.

        Args:
            message: Human-readable error message.
            error_code: Optional error code for programmatic handling.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationError(PrefetchError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, component: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message describing the configuration issue.
            component: Optional component name where the error occurred.
        """
        super().__init__(message, "CONFIG_ERROR")
        self.component = component


class ValidationError(PrefetchError):
    """Raised when data validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Error message describing the validation failure.
            field: Optional field name that failed validation.
        """
        super().__init__(message, "VALIDATION_ERROR")
        self.field = field


class ItemValidationError(ValidationError):
    """Raised when an item record is missing its ID or resource locator."""


class FetchError(PrefetchError):
    """Raised when a batch of items could not be fetched.

    The coordinator only reads ``message``; the subclasses exist so that
    logs and retry decisions can tell the failure kinds apart.
    """

    def __init__(
        self, message: str, url: str | None = None, error_code: str = "FETCH_ERROR"
    ) -> None:
        """Initialize fetch error.

        Args:
            message: Error message describing the fetch failure.
            url: Optional URL of the request that failed.
            error_code: Error code of the failure kind.
        """
        super().__init__(message, error_code)
        self.url = url


class TransportFailure(FetchError):
    """Raised when the provider could not be reached or timed out."""

    def __init__(self, message: str, url: str | None = None) -> None:
        """Initialize transport failure."""
        super().__init__(message, url, "TRANSPORT_ERROR")


class ProtocolFailure(FetchError):
    """Raised when the provider answers with a non-success status."""

    def __init__(
        self, message: str, status_code: int, url: str | None = None
    ) -> None:
        """Initialize protocol failure.

        Args:
            message: Error message describing the failure.
            status_code: HTTP status code returned by the provider.
            url: Optional URL of the request that failed.
        """
        super().__init__(message, url, "PROTOCOL_ERROR")
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Server-side errors may succeed on a later attempt."""
        return self.status_code >= 500  # noqa: PLR2004


class ShapeFailure(FetchError):
    """Raised when the response body does not match the expected schema."""

    def __init__(self, message: str, url: str | None = None) -> None:
        """Initialize shape failure."""
        super().__init__(message, url, "SHAPE_ERROR")


class PersistenceError(PrefetchError):
    """Raised when snapshot storage operations fail."""

    def __init__(self, message: str, storage_type: str | None = None) -> None:
        """Initialize persistence error.

        Args:
            message: Error message describing the storage issue.
            storage_type: Optional type of storage that caused the error.
        """
        super().__init__(message, "PERSISTENCE_ERROR")
        self.storage_type = storage_type


class CorruptSnapshotError(ValidationError):
    """Raised when a persisted snapshot fails structural validation."""

    def __init__(self, message: str) -> None:
        """Initialize the error with a specific message.

        Args:
            message: Description of the validation failure.
        """
        super().__init__(message, "snapshot")
        self.error_code = "CORRUPT_SNAPSHOT"
