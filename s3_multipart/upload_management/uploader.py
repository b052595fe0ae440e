"""Signed multipart upload operations against an S3-compatible store.

Each operation builds one canonical request, signs it, sends it through the
injected transport and interprets the response. The uploader keeps no state
between calls apart from its credentials, so part uploads for the same
session may run concurrently.
"""

import hashlib
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from urllib.parse import urlsplit

from s3_multipart.const import (
    COMPLETE_CONTENT_TYPE,
    EMPTY_PAYLOAD_SHA256,
    MAX_PART_NUMBER,
    MIN_PART_NUMBER,
)
from s3_multipart.exceptions import MissingETag
from s3_multipart.models import Credentials, Part
from s3_multipart.signing.sigv4 import (
    SigV4Signer,
    canonical_query_string,
    canonical_uri,
    format_amz_date,
    uri_encode,
)
from s3_multipart.transport.base import CancelToken, HttpRequest, Transport
from s3_multipart.upload_management.dispatch import dispatch, raise_for_status
from s3_multipart.upload_management.xml_payloads import (
    build_complete_body,
    extract_upload_id,
    strip_etag_quotes,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _url_query(params: Sequence[tuple[str, str]]) -> str:
    """Render query parameters for the URL, in canonical order.

    Matches the canonical query string except that value-less flags are
    written bare (``uploads`` rather than ``uploads=``).
    """
    encoded = sorted((uri_encode(k), uri_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" if v else k for k, v in encoded)


class Uploader:
    """Initiate, upload parts to, complete and abort multipart uploads."""

    def __init__(
        self,
        credentials: Credentials,
        transport: Transport,
        clock: Callable[[], datetime] | None = None,
        cache_signing_key: bool = True,
    ) -> None:
        """Initialise the uploader.

        Args:
            credentials: Delegated credentials, fixed for the uploader's lifetime.
            transport: Collaborator that executes HTTP requests.
            clock: Returns the signing time; defaults to the current UTC time.
            cache_signing_key: Reuse the derived signing key within a day.
        """
        self._credentials = credentials
        self._transport = transport
        self._clock = clock or _utc_now
        self._signer = SigV4Signer(credentials, cache_signing_key=cache_signing_key)
        endpoint = urlsplit(credentials.endpoint.rstrip("/"))
        if endpoint.netloc:
            self._host = endpoint.netloc
            self._base_url = f"{endpoint.scheme}://{endpoint.netloc}"
            self._path_prefix = endpoint.path.rstrip("/")
        else:
            self._host = self._base_url = credentials.endpoint.rstrip("/")
            self._path_prefix = ""

    def object_url(self, bucket: str, object_key: str) -> str:
        """Return the canonical access URL of an object."""
        return f"{self._base_url}{self._object_path(bucket, object_key)}"

    def _object_path(self, bucket: str, object_key: str) -> str:
        """Path requested for an object, including any endpoint path prefix."""
        return f"{self._path_prefix}{canonical_uri(bucket, object_key)}"

    def _build_request(
        self,
        method: str,
        bucket: str,
        object_key: str,
        query_params: Sequence[tuple[str, str]],
        body: bytes = b"",
        payload_hash: str = EMPTY_PAYLOAD_SHA256,
        unsigned_headers: dict[str, str] | None = None,
    ) -> HttpRequest:
        """Build and sign one request.

        Args:
            method: HTTP method.
            bucket: Bucket name.
            object_key: Object key; a leading slash is ignored.
            query_params: Query parameters, in any order.
            body: Request body.
            payload_hash: Hex SHA-256 of ``body``.
            unsigned_headers: Extra headers sent but not signed.

        Returns:
            The signed request.
        """
        amz_date = format_amz_date(self._clock())
        uri = self._object_path(bucket, object_key)
        query = canonical_query_string(query_params)
        signed_headers = {
            "host": self._host,
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
            "x-amz-security-token": self._credentials.session_token.get_secret_value(),
        }
        authorization = self._signer.authorization(
            method, uri, query, signed_headers, payload_hash, amz_date
        )

        headers = dict(signed_headers)
        headers["Authorization"] = authorization
        if unsigned_headers:
            headers.update(unsigned_headers)

        return HttpRequest(
            method=method,
            url=f"{self._base_url}{uri}?{_url_query(query_params)}",
            headers=headers,
            body=body,
        )

    async def initiate(
        self,
        bucket: str,
        object_key: str,
        cancel_token: CancelToken | None = None,
    ) -> str:
        """Start a multipart upload.

        Returns:
            The upload id issued by the store.

        Raises:
            HttpError: On a non-2xx response.
            MissingUploadId: If the response holds no UploadId.
            UserCanceled: If ``cancel_token`` fired.
            TransportError: On network failure.
        """
        request = self._build_request("POST", bucket, object_key, [("uploads", "")])
        response = await dispatch(self._transport, request, cancel_token)
        raise_for_status(response, "InitiateMultipartUpload")

        upload_id = extract_upload_id(response.text())
        logger.info(
            "Initiated multipart upload %s for %s/%s", upload_id, bucket, object_key
        )
        return upload_id

    async def upload_part(
        self,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        data: bytes | bytearray | memoryview,
        cancel_token: CancelToken | None = None,
    ) -> str:
        """Upload one part.

        The payload is copied before the first suspension point, so the
        caller may reuse its buffer as soon as this coroutine yields.

        Returns:
            The part's ETag, without surrounding quotes.

        Raises:
            ValueError: If ``part_number`` is outside 1..10000.
            HttpError: On a non-2xx response.
            MissingETag: If a 2xx response has no ETag header.
            UserCanceled: If ``cancel_token`` fired.
            TransportError: On network failure.
        """
        if not MIN_PART_NUMBER <= part_number <= MAX_PART_NUMBER:
            raise ValueError(
                f"part_number must be between {MIN_PART_NUMBER} and "
                f"{MAX_PART_NUMBER}, got {part_number}"
            )

        payload = bytes(data)
        request = self._build_request(
            "PUT",
            bucket,
            object_key,
            [("partNumber", str(part_number)), ("uploadId", upload_id)],
            body=payload,
            payload_hash=hashlib.sha256(payload).hexdigest(),
        )
        response = await dispatch(self._transport, request, cancel_token)
        raise_for_status(response, "UploadPart")

        etag = response.header("ETag")
        if not etag:
            raise MissingETag(
                f"No ETag returned for part {part_number} of upload {upload_id}"
            )
        logger.debug(
            "Uploaded part %d (%d bytes) of upload %s",
            part_number,
            len(payload),
            upload_id,
        )
        return strip_etag_quotes(etag)

    async def complete(
        self,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[Part],
        cancel_token: CancelToken | None = None,
    ) -> str:
        """Merge uploaded parts into the final object.

        Parts are sent in the order given; ordering and numbering are the
        caller's responsibility.

        Returns:
            The object's canonical access URL.

        Raises:
            HttpError: On a non-2xx response.
            UserCanceled: If ``cancel_token`` fired.
            TransportError: On network failure.
        """
        body = build_complete_body(parts).encode("utf-8")
        request = self._build_request(
            "POST",
            bucket,
            object_key,
            [("uploadId", upload_id)],
            body=body,
            payload_hash=hashlib.sha256(body).hexdigest(),
            unsigned_headers={"Content-Type": COMPLETE_CONTENT_TYPE},
        )
        response = await dispatch(self._transport, request, cancel_token)
        raise_for_status(response, "CompleteMultipartUpload")

        location = self.object_url(bucket, object_key)
        logger.info(
            "Completed multipart upload %s with %d parts: %s",
            upload_id,
            len(parts),
            location,
        )
        return location

    async def abort(
        self,
        bucket: str,
        object_key: str,
        upload_id: str,
        cancel_token: CancelToken | None = None,
    ) -> None:
        """Abort a multipart upload, releasing stored parts.

        Raises:
            HttpError: On a non-2xx response.
            UserCanceled: If ``cancel_token`` fired.
            TransportError: On network failure.
        """
        request = self._build_request(
            "DELETE", bucket, object_key, [("uploadId", upload_id)]
        )
        response = await dispatch(self._transport, request, cancel_token)
        raise_for_status(response, "AbortMultipartUpload")
        logger.info(
            "Aborted multipart upload %s for %s/%s", upload_id, bucket, object_key
        )
