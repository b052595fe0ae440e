"""Streaming SHA-256 and MD5 hashing.

Content is fed in chunks of any size and both digests can be read at any
point without disturbing the running state, so a checksum can be taken
mid-stream and hashing continues afterwards.
"""

import hashlib
import logging
from collections.abc import Callable
from pathlib import Path

from s3_multipart.const import DEFAULT_HASH_CHUNK_SIZE

logger = logging.getLogger(__name__)


class IncrementalHasher:
    """Maintain SHA-256 and MD5 state over a stream of byte chunks."""

    def __init__(self) -> None:
        """Start both digests from the empty input."""
        self._sha256 = hashlib.sha256()
        self._md5 = hashlib.md5()
        self._bytes_processed = 0

    @property
    def bytes_processed(self) -> int:
        """Total number of bytes fed through ``update`` so far."""
        return self._bytes_processed

    def update(self, chunk: bytes | bytearray | memoryview) -> None:
        """Feed the next chunk into both digests."""
        self._sha256.update(chunk)
        self._md5.update(chunk)
        self._bytes_processed += memoryview(chunk).nbytes

    def sha256_hexdigest(self) -> str:
        """SHA-256 of every byte seen so far, 64 lowercase hex characters."""
        return self._sha256.copy().hexdigest()

    def md5_hexdigest(self) -> str:
        """MD5 of every byte seen so far, 32 lowercase hex characters."""
        return self._md5.copy().hexdigest()


def hash_file(
    path: str | Path,
    chunk_size: int = DEFAULT_HASH_CHUNK_SIZE,
    progress_callback: Callable[[int], None] | None = None,
) -> IncrementalHasher:
    """Hash a file in chunks.

    Args:
        path: File to read.
        chunk_size: Bytes read per chunk.
        progress_callback: Called with the size of each chunk once hashed.

    Returns:
        The hasher holding digests over the whole file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If ``chunk_size`` is not positive.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size}")

    hasher = IncrementalHasher()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
            if progress_callback:
                progress_callback(len(chunk))

    logger.debug("Hashed %s: %d bytes", path, hasher.bytes_processed)
    return hasher
