"""
Handscript Backend: Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the failure modes of the service.
How:   Each exception carries a client-safe message, a machine-readable code
       and an optional context dict. Global handlers (registered in main.py)
       turn them into the `{"message": "Error", "error": {...}}` envelope.
Who:   Raised by services; caught by the global handlers.

Exception Hierarchy:
    HandscriptError (base)
    ├── ValidationError             → 400 Bad Request
    ├── RenderError                 → 400 Bad Request
    ├── MediaStoreUnavailableError  → 400 Bad Request
    └── NotFoundError               → 404 Not Found

Renderer and media store failures are reported as 400, like every other
failed operation on the images API.
"""

from typing import Any, Dict, Optional


class HandscriptError(Exception):
    """
    Base exception for all Handscript application errors.

    Attributes:
        message:     User-facing error description (safe to return in API response)
        context:     Additional debug info (logged but NOT returned to client)
        code:        Machine-readable error code used in the response envelope
        status_code: HTTP status the global handler responds with
    """

    code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(HandscriptError):
    """
    Raised when client input fails validation.

    When:    Empty text, unsupported ink color, empty delete identifier.
    HTTP:    400 Bad Request

    Example response:
        {
            "message": "Error",
            "error": {
                "code": "validation_error",
                "detail": "Color 'green' is not supported. Allowed: black, blue, red",
                "field": "color",
                "request_id": "a1b2c3d4"
            }
        }
    """

    code = "validation_error"
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


class RenderError(HandscriptError):
    """
    Raised when the text could not be turned into a page image.

    When:    Font file unreadable, Pillow failure while drawing or encoding.
    HTTP:    400 Bad Request
    """

    code = "render_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Could not render the text as a handwritten page",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MediaStoreUnavailableError(HandscriptError):
    """
    Raised when a call to the remote media store fails.

    When:    Bad credentials, network failure, rate limiting or any other
             error reported by the Cloudinary SDK. Calls are not retried.
    HTTP:    400 Bad Request

    The `operation` attribute names the store call that failed
    (list, upload, delete, get, download).
    """

    code = "media_store_unavailable"
    status_code = 400

    def __init__(
        self,
        message: str = "The media store is currently unavailable",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class NotFoundError(HandscriptError):
    """
    Raised when a requested resource does not exist in the media store.

    When:    GET /api/images/{id}/download with an unknown public id.
    HTTP:    404 Not Found
    """

    code = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
