"""Local archive of items extracted from the device."""

from __future__ import annotations

from .item import ArchiveItem, FileType, ItemStatus, split_path
from .storage import ItemStorage, MemoryItemStorage
from .store import ArchiveStore, ChangeKind, WillChange

__all__ = [
    # Items
    "ArchiveItem",
    "FileType",
    "ItemStatus",
    "split_path",
    # Storage
    "ItemStorage",
    "MemoryItemStorage",
    # Store
    "ArchiveStore",
    "ChangeKind",
    "WillChange",
]
