"""Exception types shared across the archive and sync layers.

Convention:
- ``ArchiveError`` subclasses are recoverable store-level failures. They are
  raised at the call site and never retried automatically.
- ``TransportError`` means the device could not be reached or a request timed
  out. Raised while fetching the remote manifest it aborts the whole pass;
  raised during a single transfer it only fails that item.
- ``ManifestIntegrityError`` is a programming error. It derives from
  ``AssertionError`` so that generic ``PocketSyncError`` handlers never catch it.
"""

from __future__ import annotations

from typing import Optional


class PocketSyncError(Exception):
    """Base class for user-recoverable pocketsync errors."""


class ArchiveError(PocketSyncError):
    """Base class for archive store failures."""


class ItemNotFoundError(ArchiveError):
    """Raised when an item id does not resolve to a stored item."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"No archive item with id '{item_id}'")
        self.item_id = item_id


class DuplicatePathError(ArchiveError):
    """Raised when an insert or rename would give two live items the same path."""

    def __init__(self, path: str, existing_id: str) -> None:
        super().__init__(f"Path '{path}' is already used by item '{existing_id}'")
        self.path = path
        self.existing_id = existing_id


class InvalidTransitionError(ArchiveError):
    """Raised when a status change is not allowed by the item state machine."""

    def __init__(self, item_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Item '{item_id}' cannot move from '{current}' to '{requested}'"
        )
        self.item_id = item_id
        self.current = current
        self.requested = requested


class TransportError(PocketSyncError):
    """Raised by device transports when the device is unreachable or times out."""


class TransferError(PocketSyncError):
    """Raised when moving a single item to or from the device fails."""

    def __init__(self, path: str, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Transfer of '{path}' failed: {reason}")
        self.path = path
        self.reason = reason
        self.cause = cause


class ManifestIntegrityError(AssertionError):
    """Raised when a manifest would contain the same path twice."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Duplicate manifest path '{path}'")
        self.path = path


__all__ = [
    "PocketSyncError",
    "ArchiveError",
    "ItemNotFoundError",
    "DuplicatePathError",
    "InvalidTransitionError",
    "TransportError",
    "TransferError",
    "ManifestIntegrityError",
]
