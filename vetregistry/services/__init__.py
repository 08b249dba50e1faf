"""Service layer — lifecycle rules and listing for the registry entities."""


class ServiceError(Exception):
    """Base service exception."""

    http_status = 500


class NotFoundError(ServiceError):
    """Referenced entity does not exist (-> HTTP 404)."""

    http_status = 404


class ConflictError(ServiceError):
    """Uniqueness violation, or delete/deactivate blocked by dependents (-> HTTP 409)."""

    http_status = 409


class BadRequestError(ServiceError):
    """Invalid state transition, inactive parent or empty name (-> HTTP 400)."""

    http_status = 400


class InternalError(ServiceError):
    """Unexpected store failure; the original message is kept (-> HTTP 500)."""
