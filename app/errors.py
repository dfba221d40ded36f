"""Domain failures raised by the service layer.

Every failure carries a human-readable message, a short ``error`` kind
and the HTTP status it is rendered with by the API.
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for failures of a single domain operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "service_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    """A referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


class AlreadyExists(ServiceError):
    """A domain-level duplicate, e.g. an existing registration."""

    status_code = status.HTTP_409_CONFLICT
    error = "already_exists"


class PreconditionFailed(ServiceError):
    """Dependent rows block a destructive operation."""

    status_code = status.HTTP_409_CONFLICT
    error = "precondition_failed"


class ConstraintViolation(ServiceError):
    """The store rejected a write on a check or foreign-key constraint."""

    status_code = 422
    error = "constraint_violation"


class DuplicateKey(ConstraintViolation):
    """The store rejected a write on a unique constraint."""

    status_code = status.HTTP_409_CONFLICT
    error = "duplicate_key"


class Contention(ServiceError):
    """A lock wait timed out or a deadlock was detected; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "contention"
