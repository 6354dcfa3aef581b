"""Exception types raised by the recorder, storage and client."""


class XRayError(Exception):
    """Base error for the package."""


class InvalidStateError(XRayError):
    """Raised when a finished trace (or one of its steps) is modified."""


class TraceAPIError(XRayError):
    """Raised by the HTTP client when the traces API answers with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
