"""Signed, cancellable S3 multipart uploads with short-lived credentials."""

from .exceptions import (
    HttpError,
    InvalidSessionStateError,
    MissingETag,
    MissingUploadId,
    ProtocolError,
    TransportError,
    UploaderError,
    UserCanceled,
)
from .hashing import IncrementalHasher
from .models import Credentials, FileUploadResult, Part, UploadSession, UploadState
from .signing import SigV4Signer
from .transport import AiohttpTransport, CancelToken, HttpRequest, TransportResponse
from .upload_management import MultipartFileUploader, MultipartUpload, Uploader

__version__ = "0.1.0"

__all__ = [
    "AiohttpTransport",
    "CancelToken",
    "Credentials",
    "FileUploadResult",
    "HttpError",
    "HttpRequest",
    "IncrementalHasher",
    "InvalidSessionStateError",
    "MissingETag",
    "MissingUploadId",
    "MultipartFileUploader",
    "MultipartUpload",
    "Part",
    "ProtocolError",
    "SigV4Signer",
    "TransportError",
    "TransportResponse",
    "UploadSession",
    "UploadState",
    "Uploader",
    "UploaderError",
    "UserCanceled",
]
