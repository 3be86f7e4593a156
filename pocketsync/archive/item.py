"""Archive item records and the item status state machine."""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Tuple

from ..hashing import content_hash

ARCHIVE_ROOT = "ext"


class FileType(str, Enum):
    """Archive categories known to the device."""

    SUBGHZ = "subghz"
    RFID = "rfid"
    NFC = "nfc"
    INFRARED = "infrared"
    IBUTTON = "ibutton"

    @property
    def directory(self) -> str:
        return _DIRECTORIES[self]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def from_directory(cls, directory: str) -> "FileType":
        for file_type, name in _DIRECTORIES.items():
            if name == directory:
                return file_type
        raise ValueError(f"Unknown archive directory '{directory}'")


_DIRECTORIES: Dict[FileType, str] = {
    FileType.SUBGHZ: "subghz",
    FileType.RFID: "lfrfid",
    FileType.NFC: "nfc",
    FileType.INFRARED: "infrared",
    FileType.IBUTTON: "ibutton",
}

_EXTENSIONS: Dict[FileType, str] = {
    FileType.SUBGHZ: "sub",
    FileType.RFID: "rfid",
    FileType.NFC: "nfc",
    FileType.INFRARED: "ir",
    FileType.IBUTTON: "ibtn",
}


class ItemStatus(str, Enum):
    """Synchronization status of an archive item."""

    NONE = "none"
    IMPORTED = "imported"
    SYNCHRONIZING = "synchronizing"
    SYNCHRONIZED = "synchronized"
    DELETED = "deleted"
    ERROR = "error"

    @property
    def is_stable(self) -> bool:
        return self in (ItemStatus.IMPORTED, ItemStatus.SYNCHRONIZED)

    def can_transition_to(self, target: "ItemStatus") -> bool:
        """Check a status change against the state machine."""
        if target is self:
            return True
        return target in _TRANSITIONS[self]


_TRANSITIONS: Mapping[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.NONE: frozenset({
        ItemStatus.IMPORTED,
        ItemStatus.SYNCHRONIZING,
        ItemStatus.SYNCHRONIZED,
        ItemStatus.DELETED,
    }),
    ItemStatus.IMPORTED: frozenset({
        ItemStatus.SYNCHRONIZING,
        ItemStatus.SYNCHRONIZED,
        ItemStatus.DELETED,
    }),
    ItemStatus.SYNCHRONIZING: frozenset({
        ItemStatus.SYNCHRONIZED,
        ItemStatus.ERROR,
        ItemStatus.IMPORTED,
        ItemStatus.DELETED,
    }),
    ItemStatus.SYNCHRONIZED: frozenset({
        ItemStatus.IMPORTED,
        ItemStatus.SYNCHRONIZING,
        ItemStatus.DELETED,
    }),
    ItemStatus.ERROR: frozenset({
        ItemStatus.SYNCHRONIZING,
        ItemStatus.IMPORTED,
        ItemStatus.SYNCHRONIZED,
        ItemStatus.DELETED,
    }),
    # Terminal; only a wipe removes the record.
    ItemStatus.DELETED: frozenset(),
}


def _new_id() -> str:
    return uuid.uuid4().hex


def split_path(path: str) -> Tuple[FileType, str]:
    """Split a device path such as ``/ext/nfc/card.nfc`` into type and name."""
    parts = [part for part in path.split("/") if part]
    if len(parts) != 3 or parts[0] != ARCHIVE_ROOT:
        raise ValueError(f"'{path}' is not an archive path")
    file_type = FileType.from_directory(parts[1])
    file_name = parts[2]
    suffix = f".{file_type.extension}"
    if not file_name.endswith(suffix) or len(file_name) == len(suffix):
        raise ValueError(f"'{path}' does not carry the '{suffix}' extension")
    return file_type, file_name[: -len(suffix)]


@dataclass(frozen=True)
class ArchiveItem:
    """A single key or file stored in the archive.

    Items are immutable; the store swaps whole records on every change. The
    content hash is derived from ``content`` whenever a record is created, so
    ``dataclasses.replace`` with new content always yields a fresh hash.

    ``was_synchronized`` is only meaningful on deleted records: it marks a
    tombstone whose item was on the device when the user deleted it.
    """

    name: str
    file_type: FileType
    content: bytes = b""
    id: str = field(default_factory=_new_id)
    is_favorite: bool = False
    status: ItemStatus = ItemStatus.NONE
    was_synchronized: bool = False
    hash: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.name or "/" in self.name:
            raise ValueError(f"Invalid item name '{self.name}'")
        object.__setattr__(self, "hash", content_hash(self.content))

    @property
    def file_name(self) -> str:
        return f"{self.name}.{self.file_type.extension}"

    @property
    def path(self) -> str:
        return f"/{ARCHIVE_ROOT}/{self.file_type.directory}/{self.file_name}"

    @classmethod
    def from_path(
        cls,
        path: str,
        content: bytes,
        status: ItemStatus = ItemStatus.NONE,
    ) -> "ArchiveItem":
        """Build an item from a device path; the path must be in canonical form."""
        file_type, name = split_path(path)
        item = cls(name=name, file_type=file_type, content=content, status=status)
        if item.path != path:
            raise ValueError(f"'{path}' is not a canonical archive path (expected '{item.path}')")
        return item

    def with_status(self, status: ItemStatus) -> "ArchiveItem":
        return replace(self, status=status)

    def with_content(self, content: bytes) -> "ArchiveItem":
        return replace(self, content=content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "file_type": self.file_type.value,
            "content": base64.b64encode(self.content).decode("ascii"),
            "is_favorite": self.is_favorite,
            "status": self.status.value,
            "was_synchronized": self.was_synchronized,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchiveItem":
        return cls(
            id=data["id"],
            name=data["name"],
            file_type=FileType(data["file_type"]),
            content=base64.b64decode(data.get("content", "")),
            is_favorite=bool(data.get("is_favorite", False)),
            status=ItemStatus(data.get("status", ItemStatus.NONE.value)),
            was_synchronized=bool(data.get("was_synchronized", False)),
        )


__all__ = ["ArchiveItem", "ItemStatus", "FileType", "split_path", "ARCHIVE_ROOT"]
