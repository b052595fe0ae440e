"""Tests for IncrementalHasher and hash_file."""

import hashlib
from array import array

import pytest

from s3_multipart.hashing.incremental_hasher import IncrementalHasher, hash_file

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"


def test_empty_input_yields_well_known_digests() -> None:
    hasher = IncrementalHasher()

    assert hasher.sha256_hexdigest() == EMPTY_SHA256
    assert hasher.md5_hexdigest() == EMPTY_MD5
    assert hasher.bytes_processed == 0


def test_known_digests_for_abc() -> None:
    hasher = IncrementalHasher()
    hasher.update(b"abc")

    assert (
        hasher.sha256_hexdigest()
        == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )
    assert hasher.md5_hexdigest() == "900150983cd24fb0d6963f7d28e17f72"


def test_split_chunks_match_single_update() -> None:
    split = IncrementalHasher()
    split.update(b"A")
    split.update(b"B")

    whole = IncrementalHasher()
    whole.update(b"AB")

    assert split.sha256_hexdigest() == whole.sha256_hexdigest()
    assert split.md5_hexdigest() == whole.md5_hexdigest()


def test_finalize_is_idempotent_and_non_destructive() -> None:
    hasher = IncrementalHasher()
    hasher.update(b"hello ")

    first = hasher.sha256_hexdigest()
    assert hasher.sha256_hexdigest() == first
    assert hasher.md5_hexdigest() == hasher.md5_hexdigest()

    hasher.update(b"world")

    assert hasher.sha256_hexdigest() == hashlib.sha256(b"hello world").hexdigest()
    assert hasher.md5_hexdigest() == hashlib.md5(b"hello world").hexdigest()
    assert hasher.bytes_processed == 11


def test_digest_lengths_are_fixed() -> None:
    hasher = IncrementalHasher()
    hasher.update(b"x" * 1000)

    assert len(hasher.sha256_hexdigest()) == 64
    assert len(hasher.md5_hexdigest()) == 32
    assert hasher.sha256_hexdigest() == hasher.sha256_hexdigest().lower()


def test_accepts_bytearray_and_memoryview() -> None:
    hasher = IncrementalHasher()
    hasher.update(bytearray(b"ab"))
    hasher.update(memoryview(b"cd"))

    assert hasher.sha256_hexdigest() == hashlib.sha256(b"abcd").hexdigest()


def test_hash_file_reads_in_chunks(tmp_path) -> None:
    content = bytes(range(256)) * 41
    path = tmp_path / "data.bin"
    path.write_bytes(content)
    progress: list[int] = []

    hasher = hash_file(path, chunk_size=1000, progress_callback=progress.append)

    assert hasher.sha256_hexdigest() == hashlib.sha256(content).hexdigest()
    assert hasher.md5_hexdigest() == hashlib.md5(content).hexdigest()
    assert sum(progress) == len(content)
    assert max(progress) == 1000


def test_hash_file_rejects_non_positive_chunk_size(tmp_path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"data")

    with pytest.raises(ValueError):
        hash_file(path, chunk_size=0)


def test_hash_file_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        hash_file(tmp_path / "missing.bin")


def test_bytes_processed_counts_bytes_of_wide_memoryviews() -> None:
    words = array("I", [1, 2, 3, 4])
    hasher = IncrementalHasher()

    hasher.update(memoryview(words))

    assert hasher.bytes_processed == 4 * words.itemsize
    assert hasher.sha256_hexdigest() == hashlib.sha256(words.tobytes()).hexdigest()
