"""Shared fixtures: an in-memory device and a fresh archive."""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

import pytest

from pocketsync.archive import ArchiveItem, ArchiveStore, FileType, ItemStatus, MemoryItemStorage
from pocketsync.errors import TransportError
from pocketsync.hashing import content_hash
from pocketsync.sync import Manifest, ManifestEntry, SynchronizationEngine


class FakeDevice:
    """Device transport backed by a dict of path -> content."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None) -> None:
        self.files: Dict[str, bytes] = dict(files or {})
        self.calls: List[Tuple[str, str]] = []
        self.unreachable = False
        self.fail_fetch: Set[str] = set()
        self.fail_send: Set[str] = set()
        self.fail_delete: Set[str] = set()

    def fetch_remote_manifest(self) -> Manifest:
        self.calls.append(("manifest", ""))
        if self.unreachable:
            raise TransportError("device unreachable")
        return Manifest.from_entries(
            (ManifestEntry(path, content_hash(data)) for path, data in self.files.items()),
            source="device",
        )

    def fetch_content(self, path: str) -> bytes:
        self.calls.append(("fetch", path))
        if path in self.fail_fetch:
            raise TransportError(f"timeout reading {path}")
        return self.files[path]

    def send_content(self, path: str, data: bytes) -> None:
        self.calls.append(("send", path))
        if path in self.fail_send:
            raise TransportError(f"timeout writing {path}")
        self.files[path] = data

    def delete_path(self, path: str) -> None:
        self.calls.append(("delete", path))
        if path in self.fail_delete:
            raise TransportError(f"timeout deleting {path}")
        self.files.pop(path, None)


def make_item(
    name: str,
    content: bytes,
    status: ItemStatus = ItemStatus.NONE,
    file_type: FileType = FileType.NFC,
    **kwargs,
) -> ArchiveItem:
    return ArchiveItem(name=name, file_type=file_type, content=content, status=status, **kwargs)


@pytest.fixture
def storage() -> MemoryItemStorage:
    return MemoryItemStorage()


@pytest.fixture
def store(storage: MemoryItemStorage) -> ArchiveStore:
    return ArchiveStore(storage)


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def engine(store: ArchiveStore, device: FakeDevice) -> SynchronizationEngine:
    return SynchronizationEngine(store, device)
