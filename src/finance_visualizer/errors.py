"""
Finance Visualizer - Error Types

Every error raised by the stores and report engine derives from FinanceError
and carries the HTTP status the API layer responds with.
"""


class FinanceError(Exception):
    """Base class for errors that surface to API clients."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(FinanceError):
    """A required field is missing, malformed or out of range."""

    status_code = 400

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class NotFoundError(FinanceError):
    """An id does not resolve to a stored record."""

    status_code = 404


class ConflictError(FinanceError):
    """A write would break a uniqueness or referential rule."""

    status_code = 409


class RateLimitExceeded(FinanceError):
    status_code = 429

    def __init__(self, message="Too many requests, please try again later"):
        super().__init__(message)
