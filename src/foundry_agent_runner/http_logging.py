"""httpx event hooks that log traffic to the agents service."""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine

import httpx

logger = logging.getLogger("foundry_agent_runner.http")

MASKED = "***MASKED***"
SEPARATOR = "=" * 80

_SENSITIVE_MARKERS = ("authorization", "api-key", "apikey", "key", "secret", "token")


def is_sensitive_header(name: str | None) -> bool:
    if not name:
        return False
    lowered = name.lower()
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def masked_headers(headers: httpx.Headers) -> list[tuple[str, str]]:
    return [
        (name, MASKED if is_sensitive_header(name) else value)
        for name, value in headers.items()
    ]


def _format_headers(headers: httpx.Headers) -> str:
    return "\n".join(f"  {name}: {value}" for name, value in masked_headers(headers))


def build_event_hooks(
    *,
    log_request_body: bool = False,
    log_response_body: bool = False,
) -> dict[str, list[Callable[..., Coroutine[Any, Any, None]]]]:
    """Return ``event_hooks`` for an ``httpx.AsyncClient``."""

    async def log_request(request: httpx.Request) -> None:
        lines = [
            SEPARATOR,
            "OUTGOING REQUEST",
            f"Method: {request.method}",
            f"URL: {request.url}",
            "Headers:",
            _format_headers(request.headers),
        ]
        if log_request_body and request.content:
            lines.append(f"Body: {request.content.decode('utf-8', errors='replace')}")
        lines.append(SEPARATOR)
        logger.info("\n".join(lines))

    async def log_response(response: httpx.Response) -> None:
        lines = [
            SEPARATOR,
            "INCOMING RESPONSE",
            f"Status: {response.status_code}",
            f"URL: {response.request.url}",
            "Headers:",
            _format_headers(response.headers),
        ]
        if log_response_body:
            await response.aread()
            lines.append(f"Body: {response.text}")
        lines.append(SEPARATOR)
        logger.info("\n".join(lines))

    return {"request": [log_request], "response": [log_response]}
