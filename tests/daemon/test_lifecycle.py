"""Tests for server lifecycle."""

import asyncio
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from changecov.config.models import ChangecovConfig, ReportConfig, ServerConfig
from changecov.coordinator import AnalysisCoordinator
from changecov.daemon.lifecycle import ServerController


class TestServerController:
    def test_scheduler_uses_report_interval(self, tmp_path: Path) -> None:
        controller = ServerController(
            coordinator=AnalysisCoordinator(tmp_path, ChangecovConfig()),
            report_config=ReportConfig(interval_sec=3.0),
        )

        assert controller.scheduler.interval_sec == 3.0

    @pytest.mark.asyncio
    async def test_stop_flushes_pending_samples(self, tmp_path: Path) -> None:
        coordinator = AnalysisCoordinator(tmp_path, ChangecovConfig())
        controller = ServerController(coordinator=coordinator)
        await controller.start()
        await controller.scheduler.run_now()
        controller.scheduler.request()

        await controller.stop()

        assert controller.scheduler.runs == 2
        assert controller.wait_for_shutdown().is_set()

    @pytest.mark.asyncio
    async def test_stop_is_bounded_by_timeout(self, tmp_path: Path) -> None:
        coordinator = MagicMock()
        coordinator.root = tmp_path
        coordinator.generate_report.side_effect = lambda: time.sleep(0.5)
        controller = ServerController(
            coordinator=coordinator,
            server_config=ServerConfig(shutdown_timeout_sec=0.05),
        )
        await controller.start()
        controller.scheduler.request()

        started = asyncio.get_running_loop().time()
        await controller.stop()

        assert asyncio.get_running_loop().time() - started < 0.4
        assert controller.wait_for_shutdown().is_set()
