"""Config module exports."""

from changecov.config.loader import load_config
from changecov.config.models import (
    ChangecovConfig,
    GateConfig,
    ImpactConfig,
    LoggingConfig,
    ServerConfig,
    SourcesConfig,
)

__all__ = [
    "load_config",
    "ChangecovConfig",
    "GateConfig",
    "ImpactConfig",
    "LoggingConfig",
    "ServerConfig",
    "SourcesConfig",
]
