"""Arrest Map Backend — Error Taxonomy

Every error carries a short, non-technical message that is safe to show to a
user. Underlying causes are logged by the raiser and never attached here.
"""

from typing import Optional


class ArrestMapError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ArrestMapError):
    """Bad region name, out-of-range count or malformed batch."""

    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotAuthenticated(ArrestMapError):
    status_code = 401
    default_message = "Authentication required"


class PermissionDenied(ArrestMapError):
    status_code = 403
    default_message = "Permission denied"


class ServiceUnavailable(ArrestMapError):
    status_code = 503
    default_message = "Service unavailable"


class NetworkFailure(ArrestMapError):
    status_code = 502
    default_message = "Network error. Please try again."


class BoundaryUnavailable(ArrestMapError):
    status_code = 503
    default_message = "Error loading map. Please refresh the page."
