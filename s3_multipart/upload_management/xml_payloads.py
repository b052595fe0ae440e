"""The two XML payloads of the multipart protocol.

Only the ``UploadId`` element of an Initiate response is read, so it is
located by its literal tags instead of parsing the whole document.
"""

from collections.abc import Iterable

from s3_multipart.exceptions import MissingUploadId
from s3_multipart.models import Part

UPLOAD_ID_OPEN_TAG = "<UploadId>"
UPLOAD_ID_CLOSE_TAG = "</UploadId>"


def extract_upload_id(document: str) -> str:
    """Return the text of the first ``<UploadId>`` element.

    Raises:
        MissingUploadId: If the element is absent, unterminated or empty.
    """
    start = document.find(UPLOAD_ID_OPEN_TAG)
    if start == -1:
        raise MissingUploadId(f"UploadId not found in response: {document}")
    start += len(UPLOAD_ID_OPEN_TAG)

    end = document.find(UPLOAD_ID_CLOSE_TAG, start)
    if end == -1:
        raise MissingUploadId(f"UploadId element is not terminated: {document}")

    upload_id = document[start:end].strip()
    if not upload_id:
        raise MissingUploadId(f"UploadId element is empty: {document}")
    return upload_id


def strip_etag_quotes(etag: str) -> str:
    """Remove the double quotes the store wraps around ETags."""
    return etag.strip().strip('"')


def build_complete_body(parts: Iterable[Part]) -> str:
    """Build the CompleteMultipartUpload document.

    Parts are written in the order given, each ETag wrapped in double quotes.
    """
    entries = "".join(
        f"<Part><PartNumber>{part.part_number}</PartNumber>"
        f'<ETag>"{strip_etag_quotes(part.etag)}"</ETag></Part>'
        for part in parts
    )
    return f"<CompleteMultipartUpload>{entries}</CompleteMultipartUpload>"
