"""Sync delta structures and the manifest diff."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Collection, Dict, List, Mapping, Optional

from .manifest import Manifest

if TYPE_CHECKING:
    from .conflict import ConflictResolver


class SyncAction(str, Enum):
    """What a sync pass does with a path."""
    IMPORT = "import"
    EXPORT = "export"
    DELETE = "delete"
    DELETE_REMOTE = "delete_remote"
    UNCHANGED = "unchanged"


@dataclass
class PathChange:
    """The decision taken for one path."""

    path: str
    action: SyncAction
    local_hash: Optional[str] = None
    remote_hash: Optional[str] = None
    conflict: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "path": self.path,
            "action": self.action.value,
        }
        if self.local_hash:
            result["local_hash"] = self.local_hash
        if self.remote_hash:
            result["remote_hash"] = self.remote_hash
        if self.conflict:
            result["conflict"] = True
        return result


@dataclass
class SyncDelta:
    """Computed differences between the local and the device manifest.

    Every path present in either manifest appears in exactly one of
    ``to_import``, ``to_export``, ``to_delete``, ``to_delete_remote`` and
    ``unchanged``. ``conflicts`` is an annotation: conflicting paths are also
    filed under the action their resolution picked.
    """

    to_import: List[PathChange] = field(default_factory=list)
    to_export: List[PathChange] = field(default_factory=list)
    to_delete: List[PathChange] = field(default_factory=list)
    to_delete_remote: List[PathChange] = field(default_factory=list)
    unchanged: List[PathChange] = field(default_factory=list)
    conflicts: List[PathChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.to_import or self.to_export or self.to_delete or self.to_delete_remote
        )

    @property
    def total_changes(self) -> int:
        return (
            len(self.to_import) + len(self.to_export)
            + len(self.to_delete) + len(self.to_delete_remote)
        )

    def summary(self) -> str:
        parts = []
        if self.to_import:
            parts.append(f"{len(self.to_import)} to import")
        if self.to_export:
            parts.append(f"{len(self.to_export)} to export")
        if self.to_delete:
            parts.append(f"{len(self.to_delete)} to delete locally")
        if self.to_delete_remote:
            parts.append(f"{len(self.to_delete_remote)} to delete on device")
        if self.conflicts:
            parts.append(f"{len(self.conflicts)} conflicts")
        return ", ".join(parts) if parts else "no changes"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "to_import": [c.to_dict() for c in self.to_import],
            "to_export": [c.to_dict() for c in self.to_export],
            "to_delete": [c.to_dict() for c in self.to_delete],
            "to_delete_remote": [c.to_dict() for c in self.to_delete_remote],
            "unchanged": [c.to_dict() for c in self.unchanged],
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


def compute_delta(
    local_manifest: Manifest,
    remote_manifest: Manifest,
    synchronized: Collection[str] = (),
    tombstones: Optional[Mapping[str, str]] = None,
    resolver: Optional["ConflictResolver"] = None,
) -> SyncDelta:
    """Compute the delta between the local and the device manifest.

    Args:
        local_manifest: Manifest of the local archive.
        remote_manifest: Manifest reported by the device.
        synchronized: Local paths whose item has been synchronized before. A
            path only present locally is treated as deleted on the device when
            it is in this set, and as a pending export otherwise.
        tombstones: Path to hash of items the user deleted locally after they
            had been synchronized. A device-only
            path with an untouched tombstone is deleted on the device instead
            of being imported again.
        resolver: Conflict policy for paths whose hashes differ. Defaults to
            remote wins.
    """
    if resolver is None:
        from .conflict import ConflictResolver

        resolver = ConflictResolver()

    tombstones = tombstones or {}
    synchronized = set(synchronized)
    delta = SyncDelta()

    for path in sorted(set(local_manifest.paths) | set(remote_manifest.paths)):
        local = local_manifest.lookup(path)
        remote = remote_manifest.lookup(path)

        if local is None:
            # Device only
            if tombstones.get(path) == remote.hash:
                delta.to_delete_remote.append(PathChange(
                    path=path,
                    action=SyncAction.DELETE_REMOTE,
                    remote_hash=remote.hash,
                ))
            else:
                delta.to_import.append(PathChange(
                    path=path,
                    action=SyncAction.IMPORT,
                    remote_hash=remote.hash,
                ))
        elif remote is None:
            # Local only
            if path in synchronized:
                delta.to_delete.append(PathChange(
                    path=path,
                    action=SyncAction.DELETE,
                    local_hash=local.hash,
                ))
            else:
                delta.to_export.append(PathChange(
                    path=path,
                    action=SyncAction.EXPORT,
                    local_hash=local.hash,
                ))
        elif local.hash == remote.hash:
            delta.unchanged.append(PathChange(
                path=path,
                action=SyncAction.UNCHANGED,
                local_hash=local.hash,
                remote_hash=remote.hash,
            ))
        else:
            change = PathChange(
                path=path,
                action=SyncAction.IMPORT,
                local_hash=local.hash,
                remote_hash=remote.hash,
                conflict=True,
            )
            change.action = resolver.resolve(change).action
            delta.conflicts.append(change)
            if change.action is SyncAction.EXPORT:
                delta.to_export.append(change)
            else:
                delta.to_import.append(change)

    return delta


__all__ = [
    "SyncAction",
    "PathChange",
    "SyncDelta",
    "compute_delta",
]
