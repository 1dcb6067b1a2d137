"""changecov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Input (coverage payloads, artifacts)
- 4xxx: Storage (baseline, dependency cache, reports)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Input (3xxx)
    PAYLOAD_EMPTY = 3001
    PAYLOAD_MALFORMED = 3002

    # Storage (4xxx)
    STORAGE_READ_FAILED = 4001
    STORAGE_WRITE_FAILED = 4002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


@dataclass(frozen=True, slots=True)
class ChangecovError(Exception):
    """Base error with structured context for HTTP and CLI responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PAYLOAD_MALFORMED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ChangecovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class PayloadError(ChangecovError):
    """Rejected coverage uploads."""

    @classmethod
    def empty(cls) -> "PayloadError":
        return cls(
            code=ErrorCode.PAYLOAD_EMPTY,
            message="Coverage payload is empty",
        )

    @classmethod
    def malformed(cls, reason: str) -> "PayloadError":
        return cls(
            code=ErrorCode.PAYLOAD_MALFORMED,
            message=f"Malformed coverage payload: {reason}",
            details={"reason": reason},
        )


class StorageError(ChangecovError):
    """Baseline, cache and report file failures."""

    @classmethod
    def read_failed(cls, path: str, reason: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_READ_FAILED,
            message=f"Failed to read {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_WRITE_FAILED,
            message=f"Failed to write {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )


class InternalError(ChangecovError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )

    @classmethod
    def timeout(cls, operation: str, seconds: float) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_TIMEOUT,
            message=f"{operation} timed out after {seconds}s",
            retryable=True,
            details={"operation": operation, "timeout_sec": seconds},
        )
