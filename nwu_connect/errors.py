"""
Domain errors raised by the service layer.

The app factory maps every ``ConnectError`` to a JSON response carrying its
status code, the same way FastAPI renders ``HTTPException``.
"""

from __future__ import annotations


class ConnectError(Exception):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidRequestError(ConnectError):
    status_code = 400
    default_detail = "Invalid request"


class UnauthorizedError(ConnectError):
    status_code = 401
    default_detail = "Not authenticated"


class ForbiddenError(ConnectError):
    status_code = 403
    default_detail = "Forbidden"


class NotFoundError(ConnectError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(ConnectError):
    status_code = 409
    default_detail = "Conflict"
