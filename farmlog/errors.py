"""
Error taxonomy for FarmLog

Every error carries a stable machine-checkable ``code`` and the HTTP status
the API reports it with. The client maps API responses back onto the same
classes.
"""

from typing import Optional


class FarmLogError(Exception):
    """Base class for all FarmLog errors"""

    code = "server_error"
    status_code = 500

    def __init__(self, message: str = "", *, field: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.field = field

    def to_dict(self) -> dict:
        """Error body as returned by the API"""
        return {"error": self.code, "detail": self.message}


class ValidationError(FarmLogError):
    """Bad or missing input"""

    code = "invalid_data"
    status_code = 400


class InvalidVariant(ValidationError):
    """``type`` is not one of the known activity variants"""


class InvalidDate(ValidationError):
    """``date`` does not parse as a calendar date"""


class MissingRequiredField(ValidationError):
    """A required field is absent or blank"""


class InvalidFieldValue(ValidationError):
    """An enumerated attribute holds a value outside its set"""


class ImmutableField(ValidationError):
    """An update tried to change a field that is fixed at creation"""


class BadRequestError(FarmLogError):
    """Malformed request body"""

    code = "bad_request"
    status_code = 400


class NotFoundError(FarmLogError):
    """No record matches the id for this owner"""

    code = "not_found"
    status_code = 404


class ConflictError(FarmLogError):
    """Duplicate registration"""

    code = "conflict"
    status_code = 409


class AuthError(FarmLogError):
    """Missing, invalid or expired token, or bad credentials"""

    code = "unauthorized"
    status_code = 401


class StorageError(FarmLogError):
    """Durable read or write failed"""

    code = "server_error"
    status_code = 500


class TransportError(FarmLogError):
    """The API could not be reached or did not answer in time"""

    code = "transport_error"
    status_code = 503


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (ValidationError, BadRequestError, NotFoundError, ConflictError, AuthError, StorageError)
}
