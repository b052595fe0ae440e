"""Incremental content hashing."""

from .incremental_hasher import IncrementalHasher, hash_file

__all__ = ["IncrementalHasher", "hash_file"]
