"""
Loguru configuration shared by the API and the reconciliation services.

Every record carries a ``request_id`` extra so webhook deliveries can be
followed through the store and reconciler logs.
"""

import sys
from contextvars import ContextVar
from typing import Optional

from loguru import logger

from .config import settings

REQUEST_ID_DEFAULT = "-"
_request_id_var: ContextVar[str] = ContextVar("request_id", default=REQUEST_ID_DEFAULT)
_is_configured = False

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | request_id={extra[request_id]} | "
    "{name}:{function}:{line} - {message} | {extra}"
)


def _patch_record(record):
    """Inject the contextual request_id into every log record."""
    record["extra"]["request_id"] = _request_id_var.get(REQUEST_ID_DEFAULT)


def setup_logging(level: Optional[str] = None):
    """Configure loguru once and return the shared logger."""
    global _is_configured
    log_level = (level or settings.log_level).upper()

    logger.remove()
    if not _is_configured:
        logger.configure(extra={"request_id": REQUEST_ID_DEFAULT}, patcher=_patch_record)

    logger.add(
        sys.stdout,
        level=log_level,
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=False,
    )

    _is_configured = True
    return logger


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_var.set(request_id or REQUEST_ID_DEFAULT)


def clear_request_id() -> None:
    _request_id_var.set(REQUEST_ID_DEFAULT)
