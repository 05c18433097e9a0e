"""Error taxonomy shared by services and routes.

Each error knows the HTTP status it is surfaced as. The app-level handler in
``trainhub.main`` renders them as ``{"error": message, "details": ...}``.
"""

from typing import Any


class TrainhubError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body: dict[str, Any] = {'error': self.message}
        if self.details is not None:
            body['details'] = self.details
        return body


class Unauthorized(TrainhubError):
    status_code = 401


class Forbidden(TrainhubError):
    status_code = 403


class NotFound(TrainhubError):
    status_code = 404


class ValidationError(TrainhubError):
    status_code = 400


class BookingConflict(TrainhubError):
    status_code = 409


class InvalidStateTransition(TrainhubError):
    status_code = 409


class UpstreamFailure(TrainhubError):
    """The datastore call failed. Details stay in the server log."""
    status_code = 500
