"""
Service exceptions.

Each exception carries the HTTP status it is rendered with, so controllers can
let them propagate and a single handler in ``shoplist.main`` turns them into
responses.
"""


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    """List, item, recipe or ingredient is absent or not visible to the requester."""

    status_code = 404


class ValidationError(ServiceError):
    """Input is well-formed JSON but not acceptable (bad amount, missing name, ...)."""

    status_code = 400


class ConflictError(ServiceError):
    """A uniqueness rule would be broken."""

    status_code = 409


class AuthorizationError(ServiceError):
    """Bearer credential or share token was rejected."""

    status_code = 401


class TransientStoreError(ServiceError):
    """Storage timed out or is unreachable. Safe to retry."""

    status_code = 503
    retry_after = 1
