"""
Domain errors raised by the service layer and request dependencies.

Each class carries the HTTP status the API maps it to; the handlers in
``helpdesk.main`` turn them into ``{"detail": ..., "request_id": ...}`` bodies.
Persistence failures are not wrapped here: ``SQLAlchemyError`` is mapped
directly to an opaque 503.
"""
from typing import Any

from fastapi import status


class HelpdeskError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Any = "Request failed"):
        super().__init__(detail)
        self.detail = detail


class ValidationError(HelpdeskError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(HelpdeskError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: Any = "Not authorized to access this route"):
        super().__init__(detail)


class AuthorizationError(HelpdeskError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(HelpdeskError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(HelpdeskError):
    status_code = status.HTTP_409_CONFLICT
