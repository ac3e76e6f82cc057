"""Application errors surfaced by services."""


class ServiceError(Exception):
    """Base class for errors with a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Request data failed validation."""


class NotFoundError(ServiceError):
    """The requested entity does not exist for the caller."""


class UnauthorizedError(ServiceError):
    """No valid session is attached to the request."""


class DuplicateSeriesError(ServiceError):
    """A show with the same provenance already exists for the user."""


class CatalogError(ServiceError):
    """Base class for catalog failures."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class CatalogRateLimitError(CatalogError):
    """The catalog rejected the request because of its rate limit."""


class CatalogNotFoundError(CatalogError):
    """The catalog has no title with the requested id."""


class CatalogUpstreamError(CatalogError):
    """The catalog failed or returned an unusable payload."""
