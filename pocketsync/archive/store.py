"""The owning, observable collection of archive items."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..errors import DuplicatePathError, InvalidTransitionError, ItemNotFoundError
from .item import ArchiveItem, ItemStatus
from .storage import ItemStorage, MemoryItemStorage

logger = logging.getLogger("pocketsync.archive.store")


class ChangeKind(str, Enum):
    """Kinds of structural mutation announced to observers."""

    INSERT = "insert"
    REPLACE = "replace"
    STATUS = "status"
    FAVORITE = "favorite"
    RENAME = "rename"
    WIPE = "wipe"


@dataclass(frozen=True)
class WillChange:
    """Sent to observers immediately before a mutation becomes visible."""

    kind: ChangeKind
    item_id: str


Observer = Callable[[WillChange], None]


class ArchiveStore:
    """Single-writer owner of the archive.

    Every mutation runs under one re-entrant lock, announces itself with a
    :class:`WillChange` notification, applies the change and then writes the
    full item list through to the storage collaborator. Readers get tuples of
    immutable items and may hold on to them across later mutations.
    """

    def __init__(self, storage: Optional[ItemStorage] = None):
        self._storage: ItemStorage = storage if storage is not None else MemoryItemStorage()
        self._lock = threading.RLock()
        self._observers: List[Observer] = []
        self._items: List[ArchiveItem] = list(self._storage.load())
        logger.debug("Archive store opened with %d items", len(self._items))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def locked(self) -> threading.RLock:
        """Lock for call sites that must re-validate state before writing."""
        return self._lock

    def snapshot(self) -> Tuple[ArchiveItem, ...]:
        with self._lock:
            return tuple(self._items)

    @property
    def items(self) -> Tuple[ArchiveItem, ...]:
        return self.snapshot()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return any(item.id == item_id for item in self._items)

    def get(self, item_id: str) -> ArchiveItem:
        with self._lock:
            return self._items[self._index_of(item_id)]

    def find_by_path(self, path: str) -> Optional[ArchiveItem]:
        """Return the live (non-deleted) item at ``path``, if any."""
        with self._lock:
            for item in self._items:
                if item.path == path and item.status is not ItemStatus.DELETED:
                    return item
        return None

    def synchronized_paths(self) -> Set[str]:
        with self._lock:
            return {
                item.path for item in self._items if item.status is ItemStatus.SYNCHRONIZED
            }

    def tombstones(self) -> Dict[str, str]:
        """Map the path of every deleted, previously synchronized item to its hash.

        Items deleted before they ever reached the device leave no tombstone.
        """
        with self._lock:
            return {
                item.path: item.hash
                for item in self._items
                if item.status is ItemStatus.DELETED and item.was_synchronized
            }

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def _notify(self, change: WillChange) -> None:
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                logger.exception("Archive observer failed on %s", change.kind.value)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(self, item: ArchiveItem) -> ArchiveItem:
        """Insert ``item`` or replace the stored item with the same id."""
        with self._lock:
            self._ensure_path_free(item)
            kind = ChangeKind.INSERT if self._find_index(item.id) is None else ChangeKind.REPLACE
            self._notify(WillChange(kind, item.id))
            # Observers may have mutated the store while handling the notice.
            index = self._find_index(item.id)
            if index is None:
                self._items.append(item)
            else:
                self._items[index] = item
            self._persist()
            return item

    def import_item(self, item: ArchiveItem) -> ArchiveItem:
        """Add a locally created item as ``imported``.

        Re-importing an item whose id and content are already stored is a
        no-op and returns the stored record.
        """
        with self._lock:
            index = self._find_index(item.id)
            if index is not None and self._items[index].content == item.content:
                return self._items[index]
            return self.upsert(item.with_status(ItemStatus.IMPORTED))

    def remove(self, item_id: str) -> ArchiveItem:
        """Soft delete: the record stays as a tombstone until wiped."""
        return self.set_status(item_id, ItemStatus.DELETED)

    def wipe(self, item_id: str) -> None:
        with self._lock:
            self._index_of(item_id)
            self._notify(WillChange(ChangeKind.WIPE, item_id))
            del self._items[self._index_of(item_id)]
            self._persist()

    def set_status(self, item_id: str, status: ItemStatus) -> ArchiveItem:
        with self._lock:
            current = self.get(item_id)
            if current.status is status:
                return current
            if not current.status.can_transition_to(status):
                raise InvalidTransitionError(item_id, current.status.value, status.value)
            if status is ItemStatus.DELETED:
                updated = replace(
                    current,
                    status=status,
                    was_synchronized=current.status is ItemStatus.SYNCHRONIZED,
                )
            else:
                updated = current.with_status(status)
            self._notify(WillChange(ChangeKind.STATUS, item_id))
            self._items[self._index_of(item_id)] = updated
            self._persist()
            logger.debug("%s: %s -> %s", current.path, current.status.value, status.value)
            return updated

    def toggle_favorite(self, item_id: str) -> ArchiveItem:
        with self._lock:
            current = self.get(item_id)
            updated = replace(current, is_favorite=not current.is_favorite)
            self._notify(WillChange(ChangeKind.FAVORITE, item_id))
            self._items[self._index_of(item_id)] = updated
            self._persist()
            return updated

    def rename(self, item_id: str, new_name: str) -> ArchiveItem:
        with self._lock:
            updated = replace(self.get(item_id), name=new_name)
            self._ensure_path_free(updated)
            self._notify(WillChange(ChangeKind.RENAME, item_id))
            self._items[self._index_of(item_id)] = updated
            self._persist()
            logger.info("Renamed %s -> %s", item_id, updated.path)
            return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find_index(self, item_id: str) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None

    def _index_of(self, item_id: str) -> int:
        index = self._find_index(item_id)
        if index is None:
            raise ItemNotFoundError(item_id)
        return index

    def _ensure_path_free(self, item: ArchiveItem) -> None:
        if item.status is ItemStatus.DELETED:
            return
        for other in self._items:
            if (
                other.id != item.id
                and other.status is not ItemStatus.DELETED
                and other.path == item.path
            ):
                raise DuplicatePathError(item.path, other.id)

    def _persist(self) -> None:
        self._storage.save(list(self._items))


__all__ = ["ArchiveStore", "ChangeKind", "WillChange", "Observer"]
