"""Loguru setup shared by the API, the ingestion run and the CLI scripts.

Every record carries ``request_id`` (set per HTTP request by
``RequestContextLogMiddleware``) and ``run_id`` (set for the duration of one
``run_ingestion`` call), so a single store fetch can be traced back to the
request or cron tick that started it.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from sys import stdout
from typing import Any

from loguru import logger

from app.core.config import settings

request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
run_id_ctx_var: ContextVar[str] = ContextVar("run_id", default="-")


def _patch_record(record: dict[str, Any]) -> None:
    record["extra"].setdefault("request_id", request_id_ctx_var.get())
    record["extra"].setdefault("run_id", run_id_ctx_var.get())


def setup_logging(level: str | None = None) -> None:
    """Send JSON records to stdout; ``level`` defaults to ``LOG_LEVEL``."""

    level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=logging.INFO)
    # httpx logs every Places request at INFO, including the key in the query string.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.remove()
    logger.configure(patcher=_patch_record)
    logger.add(
        stdout,
        level=level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        serialize=True,
    )
