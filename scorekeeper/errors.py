"""Typed errors raised by the settlement services.

Routes translate these into HTTP responses; services never build
``HTTPException`` themselves.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def status_code(self) -> int:
        return {
            "VALIDATION_ERROR": 422,
            "NOT_FOUND": 404,
            "FORBIDDEN": 403,
            "CONFLICT": 409,
            "INTERNAL_ERROR": 500,
        }[self.value]


class ScorekeeperError(Exception):
    """Base class for every error surfaced to callers of the services."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class ValidationError(ScorekeeperError):
    """Malformed or inconsistent input (roster sizes, foreign ids, negative scores)."""

    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(ScorekeeperError):
    code = ErrorCode.NOT_FOUND


class ForbiddenError(ScorekeeperError):
    """Operation not allowed in the current state (closed season, non-latest match)."""

    code = ErrorCode.FORBIDDEN


class ConflictError(ScorekeeperError):
    """A concurrent write changed a row between read and update."""

    code = ErrorCode.CONFLICT


class InternalError(ScorekeeperError):
    code = ErrorCode.INTERNAL_ERROR
