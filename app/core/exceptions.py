"""Domain error taxonomy.

Every error carries the HTTP status code it should surface as, which the
error handling middleware reads through ``status_code``.
"""

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed or mutually exclusive input."""

    status_code = HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    """A referenced entity does not exist."""

    status_code = HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ResolutionError(ServiceError):
    """The geocoding provider failed, timed out or returned no result."""

    status_code = HTTP_502_BAD_GATEWAY


class PersistenceError(ServiceError):
    """The document store rejected or failed an operation."""

    status_code = HTTP_500_INTERNAL_SERVER_ERROR
