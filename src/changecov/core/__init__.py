"""Core module exports."""

from changecov.core.errors import (
    ChangecovError,
    ConfigError,
    ErrorCode,
    InternalError,
    PayloadError,
    StorageError,
)
from changecov.core.logging import (
    bind_request,
    configure_logging,
    current_request_id,
    unbind_request,
)

__all__ = [
    # Errors
    "ChangecovError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "PayloadError",
    "StorageError",
    # Logging
    "bind_request",
    "configure_logging",
    "current_request_id",
    "unbind_request",
]
