"""Multipart upload operations and the helpers that drive them."""

from .dispatch import dispatch, raise_for_status
from .file_uploader import MultipartFileUploader
from .multipart_upload import MultipartUpload
from .uploader import Uploader

__all__ = [
    "MultipartFileUploader",
    "MultipartUpload",
    "Uploader",
    "dispatch",
    "raise_for_status",
]
