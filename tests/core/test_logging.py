"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from changecov.config.models import LoggingConfig, LogOutputConfig
from changecov.core.logging import (
    bind_request,
    configure_logging,
    current_request_id,
    unbind_request,
)


class TestRequestBinding:
    """Per-upload context binding."""

    def setup_method(self) -> None:
        unbind_request()

    def test_given_request_id_when_bound_then_can_retrieve(self) -> None:
        result = bind_request("test-123")

        assert result == "test-123"
        assert current_request_id() == "test-123"

    def test_given_no_id_when_bound_then_generates_one(self) -> None:
        """A 12 character id is generated when the client sends none."""
        rid = bind_request()

        assert len(rid) == 12
        assert current_request_id() == rid

    def test_given_bound_id_when_unbound_then_removed(self) -> None:
        bind_request("to-clear", route="upload")

        unbind_request()

        assert current_request_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        unbind_request()

    def teardown_method(self) -> None:
        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()

    def test_given_file_output_when_log_then_json_lines_written(self, tmp_path: Path) -> None:
        """JSON file output carries event, context, level and timestamp."""
        # Given
        log_file = tmp_path / "changecov.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        # When
        structlog.get_logger("test").info("coverage_merged", files=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "coverage_merged"
        assert data["files"] == 3
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_bound_request_when_log_then_context_included(self, tmp_path: Path) -> None:
        log_file = tmp_path / "req.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(log_file))])
        )
        bind_request("abc123", route="upload")

        structlog.get_logger().info("coverage_received")

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["request_id"] == "abc123"
        assert data["route"] == "upload"

    def test_given_multi_output_config_when_configure_then_levels_respected(
        self, tmp_path: Path
    ) -> None:
        """Each output filters at its own level."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = structlog.get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_stdlib_record_when_logged_then_rendered_as_json(self, tmp_path: Path) -> None:
        """Foreign records (uvicorn, starlette) share the configured format."""
        log_file = tmp_path / "foreign.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(log_file))])
        )

        logging.getLogger("uvicorn.error").warning("server shutting down")

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "server shutting down"
        assert data["level"] == "warning"

    def test_simple_params_configure_console_output(self) -> None:
        configure_logging(json_format=True, level="WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
