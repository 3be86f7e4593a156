"""Archive synchronization with the device."""

from __future__ import annotations

from .manifest import Manifest, ManifestEntry
from .protocol import PathChange, SyncAction, SyncDelta, compute_delta
from .conflict import ConflictResolution, ConflictResolver, ConflictStrategy
from .events import EventKind, EventStream, SyncEvent
from .transport import DeviceTransport
from .engine import SynchronizationEngine, SyncResult, SyncSettings, shared_engine

__all__ = [
    # Manifest
    "Manifest",
    "ManifestEntry",
    # Protocol
    "PathChange",
    "SyncAction",
    "SyncDelta",
    "compute_delta",
    # Conflict
    "ConflictResolution",
    "ConflictResolver",
    "ConflictStrategy",
    # Events
    "EventKind",
    "EventStream",
    "SyncEvent",
    # Transport
    "DeviceTransport",
    # Engine
    "SynchronizationEngine",
    "SyncResult",
    "SyncSettings",
    "shared_engine",
]
