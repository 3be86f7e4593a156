"""Persistence collaborators for the archive store."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .item import ArchiveItem

logger = logging.getLogger("pocketsync.archive.storage")


class ItemStorage(Protocol):
    """Write-through persistence used by :class:`ArchiveStore`."""

    def load(self) -> List[ArchiveItem]:
        ...

    def save(self, items: Sequence[ArchiveItem]) -> None:
        ...


class MemoryItemStorage:
    """Keeps serialized item records in memory.

    Records go through ``ArchiveItem.to_dict`` so that whatever is loaded back
    is a fresh copy, the same as it would be from a real backing store.
    """

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self._records: List[Dict[str, Any]] = deepcopy(records) if records else []
        self.save_count = 0

    @classmethod
    def with_items(cls, items: Sequence[ArchiveItem]) -> "MemoryItemStorage":
        return cls([item.to_dict() for item in items])

    @property
    def records(self) -> List[Dict[str, Any]]:
        return deepcopy(self._records)

    def load(self) -> List[ArchiveItem]:
        items = [ArchiveItem.from_dict(record) for record in self._records]
        logger.debug("Loaded %d archive records", len(items))
        return items

    def save(self, items: Sequence[ArchiveItem]) -> None:
        self._records = [item.to_dict() for item in items]
        self.save_count += 1


__all__ = ["ItemStorage", "MemoryItemStorage"]
