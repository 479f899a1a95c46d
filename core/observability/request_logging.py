"""Request logging helpers for HTTP traffic."""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request

_PAYLOAD_PREVIEW_LIMIT = 2048
# Paths to skip HTTP request logging (load balancer probes)
_QUIET_PATH_PREFIXES = ("/health",)
# Donor and requester contact details never reach the logs verbatim
_SENSITIVE_PAYLOAD_KEYS = {
    "contact_number",
    "email",
    "password",
    "phone_number",
    "requester_email",
    "token",
}


def _format_client_address(client: tuple[str, int] | None) -> str:
    if not client:
        return "unknown"
    host, port = client
    return f"{host}:{port}" if port is not None else host


def _mask(value: Any) -> str:
    text = str(value or "")
    if len(text) <= 4:
        return "***"
    return f"{text[:2]}***{text[-2:]}"


def _redact_payload(value: Any, *, depth: int = 6) -> Any:
    if depth <= 0:
        return "<max depth reached>"

    if isinstance(value, dict):
        return {
            key: _mask(item) if str(key).lower() in _SENSITIVE_PAYLOAD_KEYS else _redact_payload(item, depth=depth - 1)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact_payload(item, depth=depth - 1) for item in value]
    return value


def render_payload_preview(body: bytes) -> str:
    """Return a redacted, length-limited preview of a request body."""

    if not body:
        return "<empty>"

    try:
        parsed = json.loads(body)
    except (UnicodeDecodeError, ValueError):
        return f"<unparsed {len(body)} bytes>"

    text = json.dumps(_redact_payload(parsed), ensure_ascii=False, separators=(",", ":"))
    if len(text) > _PAYLOAD_PREVIEW_LIMIT:
        return f"{text[:_PAYLOAD_PREVIEW_LIMIT]}... ({len(body)} bytes)"
    return text


def register_http_request_logging(app: FastAPI, *, logger_name: str = "core.http") -> None:
    """Attach middleware that logs every HTTP request."""

    if getattr(app.state, "_http_request_logging_installed", False):  # pragma: no cover - idempotence
        return

    logger = logging.getLogger(logger_name)

    @app.middleware("http")
    async def _log_request(request: Request, call_next):  # type: ignore[override]
        path = request.url.path
        if any(path.startswith(prefix) for prefix in _QUIET_PATH_PREFIXES):
            return await call_next(request)

        client = request.client
        client_addr = _format_client_address((client.host, client.port) if client else None)
        logger.info("HTTP %s %s from %s", request.method, path, client_addr)

        if logger.isEnabledFor(logging.DEBUG) and request.method in {"POST", "PATCH", "PUT"}:
            body = await request.body()
            logger.debug("HTTP %s %s payload %s", request.method, path, render_payload_preview(body))

        return await call_next(request)

    app.state._http_request_logging_installed = True


__all__ = ["register_http_request_logging", "render_payload_preview"]
