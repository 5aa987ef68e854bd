"""Error taxonomy shared by the REST layer and the client.

Each error carries the HTTP status it maps to, so the server can render it
and the client can rebuild it from a response.
"""


class NotesError(Exception):
    status = 500
    default_message = "Server error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message}


class ValidationError(NotesError):
    status = 400
    default_message = "Invalid input"


class Unauthorized(NotesError):
    status = 401
    default_message = "Authentication required"


class Forbidden(NotesError):
    status = 403
    default_message = "Access forbidden"


class NotFound(NotesError):
    status = 404
    default_message = "Not found"


class Conflict(NotesError):
    status = 409
    default_message = "Conflict"


class ServerError(NotesError):
    status = 500
    default_message = "Server error"


class ParseError(ValueError):
    """A stored note field holds malformed JSON. Always recovered locally."""


_BY_STATUS = {
    cls.status: cls
    for cls in (ValidationError, Unauthorized, Forbidden, NotFound, Conflict)
}


def error_for_status(status, message=None):
    """Build the error matching an HTTP status; unknown ones become ServerError."""
    return _BY_STATUS.get(status, ServerError)(message)
