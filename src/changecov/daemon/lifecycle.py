"""Ingestion server lifecycle management."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field

import structlog
import uvicorn

from changecov.config.models import ChangecovConfig, ReportConfig, ServerConfig
from changecov.coordinator import AnalysisCoordinator
from changecov.core.errors import InternalError
from changecov.daemon.scheduler import ReportScheduler

logger = structlog.get_logger()


@dataclass
class ServerController:
    """
    Orchestrates server components.

    Components:
    - AnalysisCoordinator: merged coverage, graph and report pipeline
    - ReportScheduler: rate-limited report generation
    """

    coordinator: AnalysisCoordinator
    server_config: ServerConfig = field(default_factory=ServerConfig)
    report_config: ReportConfig = field(default_factory=ReportConfig)

    scheduler: ReportScheduler = field(init=False)
    _shutdown_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def __post_init__(self) -> None:
        self.scheduler = ReportScheduler(
            generate=self.coordinator.generate_report,
            interval_sec=self.report_config.interval_sec,
        )

    async def start(self) -> None:
        """Start all server components."""
        logger.info("server starting", root=str(self.coordinator.root))
        self.scheduler.start()

        base_url = f"http://{self.server_config.host}:{self.server_config.port}"
        logger.info("server started")
        logger.info("endpoint", name="upload", url=f"{base_url}/coverage")
        logger.info("endpoint", name="health", url=f"{base_url}/health")

    async def stop(self) -> None:
        """Flush the pending report and stop, bounded by the shutdown timeout."""
        logger.info("server stopping")

        try:
            async with asyncio.timeout(self.server_config.shutdown_timeout_sec):
                await self.scheduler.flush()
        except TimeoutError:
            err = InternalError.timeout("final report", self.server_config.shutdown_timeout_sec)
            logger.warning("server_stop_timeout", **err.to_dict())
        await self.scheduler.stop()

        self._shutdown_event.set()
        logger.info("server stopped")

    def wait_for_shutdown(self) -> asyncio.Event:
        """Get the shutdown event for external coordination."""
        return self._shutdown_event


async def run_server(coordinator: AnalysisCoordinator, config: ChangecovConfig) -> None:
    """Run the ingestion server until a shutdown signal."""
    from changecov.daemon.app import create_app

    controller = ServerController(
        coordinator=coordinator,
        server_config=config.server,
        report_config=config.report,
    )
    app = create_app(controller)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
        ws="none",
    )
    server = uvicorn.Server(uvicorn_config)

    loop = asyncio.get_running_loop()
    shutdown_count = 0

    def signal_handler() -> None:
        nonlocal shutdown_count
        shutdown_count += 1
        logger.info("shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count > 1:
            server.force_exit = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await controller.start()
        await server.serve()
    finally:
        await controller.stop()
