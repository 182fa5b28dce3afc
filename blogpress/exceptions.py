"""
Application exception hierarchy.

Services raise these; the handlers registered in ``blogpress.main`` turn
them into the ``{"success": false, "error": ...}`` envelope with the
status code carried on each class.

    BlogError (base)              500
    ├── ValidationError           400  malformed or missing input
    ├── InvalidReferenceError     400  foreign reference does not resolve
    ├── DuplicateNameError        400  uniqueness violation
    ├── UnauthorizedError         401  no usable bearer token
    ├── ForbiddenError            403  authenticated but not allowed
    └── NotFoundError             404  no matching resource
"""

from typing import Any, Dict, Optional


class BlogError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing description, returned in the ``error`` field.
        context:  Extra debug info, logged but never returned to the client.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BlogError):
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidReferenceError(BlogError):
    """A referenced record (e.g. the post's category) does not exist."""

    status_code = 400


class DuplicateNameError(BlogError):
    status_code = 400


class UnauthorizedError(BlogError):
    status_code = 401

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(BlogError):
    status_code = 403


class NotFoundError(BlogError):
    """
    Raised when a requested resource does not exist.

    The message reads ``"<Resource> not found"`` so clients get the same
    wording for every resource type.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)
