"""Content hashing used as the equality oracle for synchronization."""

from __future__ import annotations

import hashlib
from pathlib import Path

DEFAULT_ALGORITHM = "sha256"
CHUNK_SIZE = 8192


class ContentHasher:
    """Computes stable hex digests for item payloads."""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm '{algorithm}'")
        self.algorithm = algorithm

    def hash(self, data: bytes) -> str:
        hasher = hashlib.new(self.algorithm)
        hasher.update(data)
        return hasher.hexdigest()

    def hash_file(self, file_path: Path) -> str:
        """Hash a file on disk without loading it in one piece."""
        hasher = hashlib.new(self.algorithm)
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hasher.update(chunk)
        return hasher.hexdigest()


_default_hasher = ContentHasher()


def content_hash(data: bytes) -> str:
    """Compute the SHA-256 hex digest of a payload."""
    return _default_hasher.hash(data)


def compute_file_hash(file_path: Path) -> str:
    """Compute SHA-256 hash of a file."""
    return _default_hasher.hash_file(file_path)


__all__ = ["ContentHasher", "content_hash", "compute_file_hash", "DEFAULT_ALGORITHM"]
