"""
Error taxonomy shared by the service and access-control layers.

Every error carries a human-readable ``message``; ``main.py`` registers
one exception handler per class that turns it into a JSON
``{"detail": message}`` response with the matching HTTP status.
"""


class BlogError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BlogError):
    """Malformed or missing required input."""

    status_code = 400


class NotFoundError(BlogError):
    """A referenced entity does not exist."""

    status_code = 404


class DuplicateEntityError(BlogError):
    """A unique key (email, tag name, role name) is already taken."""

    status_code = 400


class InvalidOperationError(BlogError):
    """The request is well-formed but a business rule forbids it."""

    status_code = 400


class ConstraintViolationError(BlogError):
    """A referential constraint blocks the delete."""

    status_code = 409


class UnauthenticatedError(BlogError):
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AccessDeniedError(BlogError):
    status_code = 403

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)
