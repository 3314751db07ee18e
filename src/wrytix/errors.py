"""
Error taxonomy for the CMS.

Services raise these; the handlers registered in `wrytix.main` render them as
`{"error": message}` with the matching HTTP status.
"""


class WrytixError(Exception):
    """Base class for all expected request failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(WrytixError):
    """No authenticated identity on the request."""

    status_code = 401


class Forbidden(WrytixError):
    """The identity's role or ownership does not permit the operation."""

    status_code = 403


class NotFound(WrytixError):
    status_code = 404


class Conflict(WrytixError):
    """Duplicate username/email/slug, or an invalid state transition."""

    status_code = 409


class ValidationError(WrytixError):
    """Missing or malformed input, including unparseable dates."""

    status_code = 400


class InternalError(WrytixError):
    """Persistence or other unexpected failure."""

    status_code = 500
