"""ChoreSync Error Handling Module

This module defines the error handling system for ChoreSync, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Transport failures are split into network, timeout and HTTP status errors
  so the executor and the facade can tell them apart
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from choresync.services.offline_queue import QueuedAction

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict for PII protection
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ("user_id",)


class ErrorCode(str, Enum):
    """Error codes for ChoreSync.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # Network and API Errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_TIMEOUT = "API_TIMEOUT"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_CLIENT_ERROR = "API_CLIENT_ERROR"
    API_AUTHENTICATION_FAILED = "API_AUTHENTICATION_FAILED"
    API_NOT_FOUND = "API_NOT_FOUND"
    API_SERVER_ERROR = "API_SERVER_ERROR"
    API_INVALID_RESPONSE = "API_INVALID_RESPONSE"

    # Offline Queue Errors
    OFFLINE_QUEUED = "OFFLINE_QUEUED"
    STORAGE_FAILED = "STORAGE_FAILED"
    QUEUE_CORRUPTED = "QUEUE_CORRUPTED"
    QUEUE_UNKNOWN_ACTION = "QUEUE_UNKNOWN_ACTION"
    QUEUE_UNSERIALIZABLE = "QUEUE_UNSERIALIZABLE"

    # Configuration Errors
    CONFIG_ERROR = "CONFIG_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to keep log records serializable.

    Attributes:
        endpoint: Optional API endpoint associated with the error
        operation: Optional operation name that caused the error
        user_id: Optional user ID (masked in logs)
        additional_data: Optional dict with primitive values only
    """

    endpoint: str | None = None
    operation: str | None = None
    user_id: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict with PII masking.

        Args:
            mask_keys: Fields to exclude from output. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary with masked sensitive fields and guaranteed additional_data key.

        Example:
            >>> context = ErrorContextModel(user_id="12345", endpoint="/tasks")
            >>> context.safe_dict()
            {'endpoint': '/tasks', 'additional_data': {}}
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.endpoint is not None and "endpoint" not in mask_keys:
            data["endpoint"] = self.endpoint
        if self.operation is not None and "operation" not in mask_keys:
            data["operation"] = self.operation
        if self.user_id is not None and "user_id" not in mask_keys:
            data["user_id"] = self.user_id

        if self.additional_data is not None and "additional_data" not in mask_keys:
            data["additional_data"] = self.additional_data
        else:
            data["additional_data"] = {}

        return data


ErrorContext = ErrorContextModel


class ChoreSyncError(Exception):
    """Base exception class for all ChoreSync errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ChoreSyncError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging with PII masking."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class InfrastructureError(ChoreSyncError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems like the
    remote API or the durable store.
    """


class NetworkError(InfrastructureError):
    """Transport failure: the request never produced an HTTP response.

    Examples:
    - Connection refused or reset
    - DNS resolution failure
    - Malformed response body
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        code: ErrorCode = ErrorCode.NETWORK_ERROR,
    ) -> None:
        super().__init__(code, message, context, original_error)


class RequestTimeoutError(InfrastructureError):
    """An attempt exceeded the hard per-attempt timeout and was cancelled."""

    def __init__(
        self,
        timeout: float,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.timeout = timeout
        super().__init__(
            ErrorCode.API_TIMEOUT,
            f"Request timed out after {timeout:g}s",
            context,
            original_error,
        )


class HttpStatusError(InfrastructureError):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(
            _status_error_code(status_code),
            message or f"HTTP error: {status_code}",
            context,
            original_error,
        )

    @property
    def is_client_error(self) -> bool:
        """Whether the status is in the 4xx range."""
        return 400 <= self.status_code < 500


class StorageError(InfrastructureError):
    """The durable store could not be read or written."""


class QueueError(InfrastructureError):
    """Offline queue contents or replay errors."""


class OfflineQueuedError(ChoreSyncError):
    """A mutation was deferred to the offline queue instead of being sent.

    This is not a failure of the action: the caller should treat it as
    accepted and pending until the next replay.
    """

    def __init__(
        self,
        action: QueuedAction,
        context: ErrorContext | None = None,
    ) -> None:
        self.action = action
        super().__init__(
            ErrorCode.OFFLINE_QUEUED,
            f"Action '{action.type}' saved for when the connection is back",
            context,
        )


class ApplicationError(ChoreSyncError):
    """Application-level errors such as configuration problems."""


def _status_error_code(status_code: int) -> ErrorCode:
    if status_code in (401, 403):
        return ErrorCode.API_AUTHENTICATION_FAILED
    if status_code == 404:
        return ErrorCode.API_NOT_FOUND
    if 400 <= status_code < 500:
        return ErrorCode.API_CLIENT_ERROR
    if 500 <= status_code < 600:
        return ErrorCode.API_SERVER_ERROR
    return ErrorCode.API_REQUEST_FAILED


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        context,
        original_error,
    )


def create_storage_error(
    message: str,
    storage_key: str,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> StorageError:
    """Create a durable store error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"key": storage_key},
    )
    return StorageError(
        ErrorCode.STORAGE_FAILED,
        message,
        context,
        original_error,
    )
