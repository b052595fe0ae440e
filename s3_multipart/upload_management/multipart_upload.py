"""Caller-side bookkeeping for one multipart upload session."""

import logging

from s3_multipart.models import Part, UploadSession
from s3_multipart.transport.base import CancelToken
from s3_multipart.upload_management.uploader import Uploader

logger = logging.getLogger(__name__)


class MultipartUpload:
    """Drive one upload session through its lifecycle.

    Wraps a stateless ``Uploader`` and records successful parts in an
    ``UploadSession``, refusing operations the session's state does not
    allow. Part uploads may be issued concurrently.
    """

    def __init__(self, uploader: Uploader, bucket: str, object_key: str) -> None:
        """Initialise the session.

        Args:
            uploader: Uploader performing the signed requests.
            bucket: Target bucket.
            object_key: Target object key.
        """
        self._uploader = uploader
        self._session = UploadSession(bucket=bucket, key=object_key)

    @property
    def session(self) -> UploadSession:
        """The session record."""
        return self._session

    async def start(self, cancel_token: CancelToken | None = None) -> str:
        """Initiate the upload and return its upload id."""
        self._session.ensure_uninitiated()
        upload_id = await self._uploader.initiate(
            self._session.bucket, self._session.key, cancel_token
        )
        self._session.mark_initiated(upload_id)
        return upload_id

    async def upload_part(
        self,
        part_number: int,
        data: bytes | bytearray | memoryview,
        cancel_token: CancelToken | None = None,
    ) -> Part:
        """Upload one part and record it."""
        self._session.ensure_accepting_parts()
        etag = await self._uploader.upload_part(
            self._session.bucket,
            self._session.key,
            self._session.require_upload_id(),
            part_number,
            data,
            cancel_token,
        )
        part = Part(part_number=part_number, etag=etag)
        self._session.add_part(part)
        return part

    async def complete(self, cancel_token: CancelToken | None = None) -> str:
        """Complete the upload with every recorded part, in part number order."""
        self._session.ensure_accepting_parts()
        location = await self._uploader.complete(
            self._session.bucket,
            self._session.key,
            self._session.require_upload_id(),
            self._session.sorted_parts(),
            cancel_token,
        )
        self._session.mark_completed(location)
        return location

    async def abort(self, cancel_token: CancelToken | None = None) -> None:
        """Abort the upload; the session accepts nothing afterwards."""
        self._session.ensure_accepting_parts()
        await self._uploader.abort(
            self._session.bucket,
            self._session.key,
            self._session.require_upload_id(),
            cancel_token,
        )
        self._session.mark_aborted()
        logger.debug(
            "Session for %s/%s aborted", self._session.bucket, self._session.key
        )
