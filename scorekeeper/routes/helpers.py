"""Shared helpers for API routes."""

from __future__ import annotations

import logging

from fastapi import Header, HTTPException

from scorekeeper.errors import ErrorCode, ScorekeeperError

logger = logging.getLogger(__name__)

ACTING_USER_HEADER = "X-User-Id"


async def get_acting_user_id(
    x_user_id: str | None = Header(default=None, alias=ACTING_USER_HEADER),
) -> str:
    """Resolve the acting user set by the upstream auth layer (or raise 401)."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id


def to_http_exception(exc: ScorekeeperError) -> HTTPException:
    """Translate a service error into an HTTP error with an actionable message.

    Internal errors are logged and rendered generically.
    """
    if exc.code is ErrorCode.INTERNAL_ERROR:
        logger.error("Internal error: %s", exc.message, exc_info=exc)
        return HTTPException(status_code=500, detail="Internal server error")
    logger.info("Rejected request (%s): %s", exc.code.value, exc.message)
    return HTTPException(
        status_code=exc.code.status_code,
        detail={"code": exc.code.value, "message": exc.message},
    )
