"""Calculation-scoped observability helpers.

Every top-level calculation runs under its own correlation id so that the
events it logs (start, degraded paths, finish) can be grouped afterwards.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar, Token
from typing import Optional

logger = logging.getLogger(__name__)

_calculation_id_ctx: ContextVar[Optional[str]] = ContextVar("calculation_id", default=None)


def new_calculation_id() -> str:
    return uuid.uuid4().hex


def bind_calculation_id(value: Optional[str] = None) -> Token:
    """Bind ``value`` (a fresh id when omitted); pass the token to reset."""

    return _calculation_id_ctx.set(value or new_calculation_id())


def reset_calculation_id(token: Optional[Token]) -> None:
    if token is not None:
        _calculation_id_ctx.reset(token)


def current_calculation_id() -> Optional[str]:
    return _calculation_id_ctx.get()


def log_event(message: str, level: int = logging.INFO, **extra: object) -> None:
    """Log ``message`` with ``extra`` and the active calculation id under ``payload``."""

    payload = {"calculation_id": current_calculation_id(), **extra}
    logger.log(level, message, extra={"payload": payload})
