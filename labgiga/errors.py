"""
Service-level errors.

Services raise these; controllers turn them into JSON responses using
``status_code`` and the class name as the machine-readable ``error`` field.
"""


class DomainError(ValueError):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "error": self.name}


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request data"


class InvalidRange(DomainError):
    status_code = 400
    default_message = "Date is outside the allowed range"


class Unauthorized(DomainError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(DomainError):
    status_code = 403
    default_message = "You are not allowed to do this"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class InvalidTransition(DomainError):
    status_code = 409
    default_message = "Status change not allowed"


class InvalidState(DomainError):
    status_code = 409
    default_message = "Not allowed in the current state"


class InsufficientStock(DomainError):
    status_code = 409
    default_message = "Not enough stock"


class DuplicatePending(DomainError):
    status_code = 409
    default_message = "A pending extension already exists for this borrowing"


class Conflict(DomainError):
    status_code = 409
    default_message = "The record was modified by another request, reload and try again"
