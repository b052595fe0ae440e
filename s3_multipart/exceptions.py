"""Exception classes for the multipart upload workflow."""


class UploaderError(Exception):
    """Base error for the multipart upload workflow."""


class HttpError(UploaderError):
    """Raised when the object store answers with a non-2xx status."""

    def __init__(self, status: int, body: str, operation: str | None = None):
        """Initialize HttpError with the store's status code and response text.

        Args:
            status: HTTP status code returned by the store.
            body: Response body text, usually an S3 XML error document.
            operation: Name of the operation that failed, if known.
        """
        prefix = f"{operation} failed" if operation else "Request failed"
        super().__init__(f"{prefix} with HTTP {status}: {body}")
        self.status = status
        self.body = body
        self.operation = operation


class ProtocolError(UploaderError):
    """Raised when a successful response lacks data the protocol requires."""


class MissingUploadId(ProtocolError):
    """Raised when an Initiate response carries no UploadId element."""


class MissingETag(ProtocolError):
    """Raised when an UploadPart response carries no ETag header."""


class UserCanceled(UploaderError):
    """Raised when the caller's cancel token fired before the request finished."""


class TransportError(UploaderError):
    """Raised when the request failed below the HTTP layer."""

    def __init__(
        self, message: str, status: int | None = None, body: str | None = None
    ):
        """Initialize TransportError.

        Args:
            message: Description of the transport failure.
            status: HTTP status code, when the transport reported one.
            body: Response body text, when the transport reported one.
        """
        super().__init__(message)
        self.status = status
        self.body = body


class InvalidSessionStateError(UploaderError):
    """Raised when an upload session is asked for an illegal transition."""


class ConfigLoadError(UploaderError):
    """Raised when uploader configuration cannot be loaded."""
