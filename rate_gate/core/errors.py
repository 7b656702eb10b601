"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    operation: str
    store_key: str
    field: str
    raw_value: str
    timeout_seconds: float
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigLookupError(AppError):
    """Raised when a per-key rate limit config cannot be read or parsed."""


class StoreUnavailableError(AppError):
    """Raised when the shared counting store cannot be reached."""


class StoreTimeoutError(StoreUnavailableError):
    """Raised when a counting store call exceeds its timeout."""
