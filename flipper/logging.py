from __future__ import annotations

import logging
import sys
import time
import uuid
from collections.abc import Callable
from typing import Any, cast

import structlog
from fastapi import Request
from starlette.responses import Response

from .config import settings

_LEVELS = {
    "CRITICAL": 50,
    "ERROR": 40,
    "WARNING": 30,
    "INFO": 20,
    "DEBUG": 10,
    "NOTSET": 0,
}


def _level_to_numeric(level: str) -> int:
    return _LEVELS.get(level.upper(), 20)


def configure_logging(level: str | None = None) -> None:
    numeric = _level_to_numeric(level or settings.LOG_LEVEL)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric)

    processors: list[Callable[..., Any]] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def request_id_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Tag every log line of a request with its X-Request-ID and log one summary event."""
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start = time.perf_counter()
    with structlog.contextvars.bound_contextvars(request_id=rid):
        response = cast(Response, await call_next(request))
        duration_ms = (time.perf_counter() - start) * 1000
        structlog.get_logger().info(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=getattr(response, "status_code", 0),
            duration_ms=round(duration_ms, 2),
        )
    response.headers["X-Request-ID"] = rid
    return response


def get_logger() -> Any:
    return structlog.get_logger()
