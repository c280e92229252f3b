# storefront/utils/errors.py
from fastapi import status


class StoreError(Exception):
    """Base class for failures that map onto an HTTP status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# Malformed or missing required input
class ValidationError(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class UnauthorizedError(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class ForbiddenError(StoreError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFoundError(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


# Referential-integrity precondition violated
class ConflictError(StoreError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class InvalidTransitionError(ConflictError):
    default_detail = "Invalid status transition"


class InternalError(StoreError):
    pass
