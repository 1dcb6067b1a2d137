"""Starlette application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette

from changecov.daemon.routes import create_routes

if TYPE_CHECKING:
    from changecov.daemon.lifecycle import ServerController


def create_app(controller: ServerController) -> Starlette:
    """Create the Starlette application for coverage ingestion."""
    return Starlette(routes=list(create_routes(controller)))
