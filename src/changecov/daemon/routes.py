"""HTTP routes for the coverage ingestion server.

POST /coverage        merge an instrumentation sample
GET  /coverage/info   summary of the latest report
POST /coverage/reset  drop all merged coverage
GET  /report          latest full report
POST /report          generate a report now
GET  /health          liveness
"""

from __future__ import annotations

import base64
import binascii
import importlib.metadata
import json
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from changecov.core.errors import PayloadError
from changecov.core.logging import bind_request, unbind_request
from changecov.coverage.models import CoverageMap, CoverageParseError, coverage_map_from_istanbul

if TYPE_CHECKING:
    from changecov.daemon.lifecycle import ServerController

log = structlog.get_logger(__name__)

COMPRESSED_HEADER = "x-coverage-compressed"


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("changecov")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def decode_payload(body: bytes, compressed: bool) -> CoverageMap:
    """Decode an upload body into a coverage map.

    The body is either a bare coverage map or ``{"data": ...}``. With
    ``compressed`` set, ``data`` is a base64 string of URL-encoded JSON.

    Raises:
        PayloadError: If the body is empty or cannot be decoded.
    """
    if not body.strip():
        raise PayloadError.empty()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadError.malformed(f"body is not JSON: {e}") from e

    data: Any = payload.get("data", payload) if isinstance(payload, dict) else payload
    if compressed:
        if not isinstance(data, str):
            raise PayloadError.malformed("compressed payload must be a string")
        try:
            data = json.loads(unquote(base64.b64decode(data, validate=True).decode("utf-8")))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PayloadError.malformed(f"cannot decompress payload: {e}") from e

    if not data:
        raise PayloadError.empty()
    try:
        return coverage_map_from_istanbul(data)
    except CoverageParseError as e:
        raise PayloadError.malformed(str(e)) from e


def create_routes(controller: ServerController) -> list[Route]:
    """Create HTTP routes bound to the server controller."""
    start_time = time.time()
    version = _get_version()
    coordinator = controller.coordinator
    max_bytes = controller.server_config.max_payload_mb * 1024 * 1024

    async def health(request: Request) -> JSONResponse:
        _ = request  # unused
        return JSONResponse(
            {
                "status": "healthy",
                "root": str(coordinator.root),
                "version": version,
                "uptime_seconds": round(time.time() - start_time, 1),
                "samples": coordinator.merger.sample_count,
            }
        )

    async def upload(request: Request) -> JSONResponse:
        bind_request(request.headers.get("x-request-id"), route="upload")
        try:
            body = await request.body()
            if len(body) > max_bytes:
                log.warning("coverage_upload_too_large", size=len(body))
                return JSONResponse(
                    {"success": False, "error": "Coverage payload too large"}, status_code=413
                )
            try:
                coverage = decode_payload(body, COMPRESSED_HEADER in request.headers)
            except PayloadError as e:
                log.warning("coverage_upload_rejected", error=str(e))
                return JSONResponse(
                    {"success": False, "error": e.message, "code": e.code.value},
                    status_code=400,
                )

            merged = coordinator.ingest(coverage)
            controller.scheduler.request()
            log.info("coverage_received", files=len(coverage), total_files=len(merged))

            latest = coordinator.latest_report
            return JSONResponse(
                {
                    "success": True,
                    "files": len(coverage),
                    "coverage": latest.summary() if latest is not None else None,
                }
            )
        finally:
            unbind_request()

    async def coverage_info(request: Request) -> JSONResponse:
        _ = request  # unused
        latest = coordinator.latest_report
        if latest is None:
            return JSONResponse({"success": False, "message": "No coverage report generated yet"})
        return JSONResponse({"success": True, "coverage": latest.summary()})

    async def reset(request: Request) -> JSONResponse:
        _ = request  # unused
        coordinator.merger.reset()
        return JSONResponse({"success": True})

    async def latest_report(request: Request) -> JSONResponse:
        _ = request  # unused
        latest = coordinator.latest_report
        if latest is None:
            return JSONResponse(
                {"success": False, "message": "No coverage report generated yet"}, status_code=404
            )
        return JSONResponse(latest.to_dict())

    async def generate_report(request: Request) -> JSONResponse:
        _ = request  # unused
        report = await controller.scheduler.run_now()
        if report is None:
            return JSONResponse(
                {"success": False, "error": controller.scheduler.last_error}, status_code=500
            )
        return JSONResponse(report.to_dict())

    return [
        Route("/health", health, methods=["GET"]),
        Route("/coverage", upload, methods=["POST"]),
        Route("/coverage/info", coverage_info, methods=["GET"]),
        Route("/coverage/reset", reset, methods=["POST"]),
        Route("/report", latest_report, methods=["GET"]),
        Route("/report", generate_report, methods=["POST"]),
    ]
