"""Coverage ingestion server."""

from changecov.daemon.app import create_app
from changecov.daemon.lifecycle import ServerController, run_server
from changecov.daemon.scheduler import ReportScheduler

__all__ = [
    "ReportScheduler",
    "ServerController",
    "create_app",
    "run_server",
]
