"""Error taxonomy shared by the services, the storage layer and the HTTP surface.

Routers and services raise these; ``moveease.main`` registers the handlers that
turn them into responses. Anything else that escapes a request is treated as an
internal error: logged with its traceback and answered with an opaque 500.
"""
from __future__ import annotations

from typing import Dict, List, Optional


class MoveEaseError(Exception):
    """Base class for errors the HTTP layer knows how to translate."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class ValidationError(MoveEaseError):
    """Input failed a constraint that the request schema cannot express."""

    status_code = 400

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation error"):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class NotFoundError(MoveEaseError):
    """Referenced record does not exist."""

    status_code = 404


class UnauthorizedError(MoveEaseError):
    """Caller may not perform this operation."""

    status_code = 401


class NotAuthenticatedError(UnauthorizedError):
    """Not authenticated"""

    status_code = 401


class ForbiddenError(UnauthorizedError):
    """Caller is authenticated but does not own the target record."""

    status_code = 403


def ensure_owner(owner_id: Optional[int], user_id: int, what: str) -> None:
    if owner_id != user_id:
        raise ForbiddenError(f"Unauthorized access to this {what}")
