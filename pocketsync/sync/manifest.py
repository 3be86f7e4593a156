"""Path/hash manifests describing one side of a synchronization."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..archive.item import ArchiveItem, ItemStatus
from ..errors import ManifestIntegrityError

logger = logging.getLogger("pocketsync.sync.manifest")


@dataclass(frozen=True)
class ManifestEntry:
    """A single (path, hash) pair."""

    path: str
    hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "hash": self.hash}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        return cls(path=data["path"], hash=data["hash"])


@dataclass
class Manifest:
    """Ordered manifest of archive contents for one side of a sync."""

    source: str = "local"
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    _entries: Dict[str, ManifestEntry] = field(default_factory=dict, repr=False)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[ManifestEntry],
        source: str = "local",
    ) -> "Manifest":
        manifest = cls(source=source)
        for entry in entries:
            manifest.add(entry)
        return manifest

    @classmethod
    def build(cls, items: Iterable[ArchiveItem], source: str = "local") -> "Manifest":
        """Build a manifest from every item that is not soft-deleted."""
        manifest = cls.from_entries(
            (
                ManifestEntry(path=item.path, hash=item.hash)
                for item in items
                if item.status is not ItemStatus.DELETED
            ),
            source=source,
        )
        logger.debug("Built %s manifest with %d entries", source, len(manifest))
        return manifest

    def add(self, entry: ManifestEntry) -> None:
        if entry.path in self._entries:
            raise ManifestIntegrityError(entry.path)
        self._entries[entry.path] = entry

    def lookup(self, path: str) -> Optional[ManifestEntry]:
        return self._entries.get(path)

    def __getitem__(self, path: str) -> ManifestEntry:
        return self._entries[path]

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def paths(self) -> List[str]:
        return list(self._entries)

    @property
    def entries(self) -> List[ManifestEntry]:
        return list(self._entries.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "created_at": self.created_at,
            "entries": [entry.to_dict() for entry in self],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        manifest = cls.from_entries(
            (ManifestEntry.from_dict(raw) for raw in data.get("entries", [])),
            source=data.get("source", "remote"),
        )
        manifest.created_at = data.get("created_at", "")
        return manifest


__all__ = ["Manifest", "ManifestEntry"]
