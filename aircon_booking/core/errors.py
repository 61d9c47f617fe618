"""
Domain errors raised by the availability store and booking handlers.

Services raise these; routes turn them into HTTP responses with
``to_http_exception`` so the store never imports FastAPI.
"""
from fastapi import HTTPException, status

MSG_DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: str | None = None):
        detail = f'{resource} with ID {resource_id} not found.' if resource_id else f'{resource} not found.'
        super().__init__(detail)
        self.resource = resource
        self.resource_id = resource_id


class ValidationFailedError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class ServerError(BookingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, detail: str = MSG_DATABASE_UNAVAILABLE):
        super().__init__(detail)


def to_http_exception(exc: BookingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)
