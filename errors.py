"""Error kinds raised by the booking rules and mapped to HTTP responses."""

from fastapi import status


class BookingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(BookingError):
    status_code = status.HTTP_409_CONFLICT
