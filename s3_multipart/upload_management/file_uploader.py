"""Upload a local file as a multipart upload.

Reads the file in fixed-size parts, hashing every part while it is sent so
the whole-file SHA-256 and MD5 are ready when the upload completes.
"""

import logging
import math
from collections.abc import Callable
from pathlib import Path

import aiofiles

from s3_multipart.const import DEFAULT_PART_SIZE, MAX_PART_NUMBER, MIN_PART_SIZE
from s3_multipart.exceptions import UploaderError
from s3_multipart.hashing.incremental_hasher import IncrementalHasher
from s3_multipart.models import FileUploadResult
from s3_multipart.transport.base import CancelToken
from s3_multipart.upload_management.multipart_upload import MultipartUpload
from s3_multipart.upload_management.uploader import Uploader

logger = logging.getLogger(__name__)


class MultipartFileUploader:
    """Upload a single file part by part, in order.

    Failures propagate to the caller. Retrying is left to the caller; with
    ``abort_on_failure`` the upload is aborted before the error is re-raised
    so the store can release the parts already sent.
    """

    def __init__(
        self,
        uploader: Uploader,
        bucket: str,
        object_key: str,
        filepath: str | Path,
        part_size: int = DEFAULT_PART_SIZE,
        progress_callback: Callable[[int], None] | None = None,
        cancel_token: CancelToken | None = None,
        abort_on_failure: bool = False,
    ) -> None:
        """Initialise the file uploader.

        Args:
            uploader: Uploader performing the signed requests.
            bucket: Target bucket.
            object_key: Target object key.
            filepath: Local file to upload.
            part_size: Bytes per part; every part but the last has this size.
            progress_callback: Called with the byte count of each uploaded part.
            cancel_token: Token passed to every request.
            abort_on_failure: Abort the upload when a part or Complete fails.
        """
        if part_size < MIN_PART_SIZE:
            raise ValueError(
                f"part_size must be at least {MIN_PART_SIZE} bytes, got {part_size}"
            )
        self._upload = MultipartUpload(uploader, bucket, object_key)
        self._filepath = Path(filepath)
        self._part_size = part_size
        self._progress_callback = progress_callback
        self._cancel_token = cancel_token
        self._abort_on_failure = abort_on_failure
        self._hasher = IncrementalHasher()

    @property
    def multipart_upload(self) -> MultipartUpload:
        """The session being driven, e.g. to read its upload id after a failure."""
        return self._upload

    async def upload(self) -> FileUploadResult:
        """Upload the file.

        Returns:
            The final location, parts and whole-file digests.

        Raises:
            FileNotFoundError: If the local file does not exist.
            ValueError: If the file needs more than 10000 parts.
            UploaderError: If any request fails.
        """
        if not self._filepath.is_file():
            raise FileNotFoundError(f"File not found: {self._filepath}")

        total_bytes = self._filepath.stat().st_size
        part_count = max(1, math.ceil(total_bytes / self._part_size))
        if part_count > MAX_PART_NUMBER:
            raise ValueError(
                f"{self._filepath} needs {part_count} parts of {self._part_size} "
                f"bytes; at most {MAX_PART_NUMBER} are allowed"
            )

        session = self._upload.session
        logger.info(
            "Starting upload of %s to %s/%s: %d bytes in %d parts",
            self._filepath,
            session.bucket,
            session.key,
            total_bytes,
            part_count,
        )
        upload_id = await self._upload.start(self._cancel_token)

        try:
            await self._upload_parts()
            location = await self._upload.complete(self._cancel_token)
        except UploaderError:
            if self._abort_on_failure:
                await self._abort_quietly()
            raise

        return FileUploadResult(
            location=location,
            upload_id=upload_id,
            total_bytes=self._hasher.bytes_processed,
            parts=session.sorted_parts(),
            sha256=self._hasher.sha256_hexdigest(),
            md5=self._hasher.md5_hexdigest(),
        )

    async def _upload_parts(self) -> None:
        """Read the file and upload it part by part."""
        async with aiofiles.open(self._filepath, "rb") as f:
            part_number = 1
            while True:
                chunk = await f.read(self._part_size)
                if not chunk and part_number > 1:
                    break

                await self._upload.upload_part(part_number, chunk, self._cancel_token)
                self._hasher.update(chunk)
                if self._progress_callback:
                    self._progress_callback(len(chunk))

                logger.debug(
                    "Uploaded part %d: %d bytes so far",
                    part_number,
                    self._hasher.bytes_processed,
                )
                if len(chunk) < self._part_size:
                    break
                part_number += 1

    async def _abort_quietly(self) -> None:
        """Abort after a failure, keeping the original error as the one raised."""
        session = self._upload.session
        if session.upload_id is None or session.is_terminal:
            return
        try:
            await self._upload.abort()
        except UploaderError as exc:
            logger.warning(
                "Failed to abort upload %s after error: %s", session.upload_id, exc
            )
        else:
            logger.info("Aborted upload %s after failure", session.upload_id)
