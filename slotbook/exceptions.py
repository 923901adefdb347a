"""
Error taxonomy for the availability and booking engine.

Raised by the domain services and translated to HTTP responses in main.py.
"No slots" is never an error; only admission produces ConflictError.
"""


class BookingEngineError(Exception):
    """Base class for all engine errors."""

    code = "booking_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "retryable": self.retryable}


class ValidationError(BookingEngineError):
    """Malformed input or a request that can never succeed as sent."""

    code = "validation_error"
    status_code = 400


class NotFoundError(ValidationError):
    """Referenced provider, service or booking does not exist (for this caller)."""

    code = "not_found"
    status_code = 404


class ConflictError(BookingEngineError):
    """The requested slot is no longer free. Retry after refreshing slots."""

    code = "slot_conflict"
    status_code = 409
    retryable = True


class UnavailableError(BookingEngineError):
    """Provider has no bookable hours for the request; nothing to retry."""

    code = "unavailable"
    status_code = 422


class InfrastructureError(BookingEngineError):
    """Storage or lock backend failure."""

    code = "infrastructure_error"
    status_code = 503
