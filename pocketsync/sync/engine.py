"""Synchronization engine reconciling the archive with the device."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..archive.item import ArchiveItem, ItemStatus
from ..archive.storage import MemoryItemStorage
from ..archive.store import ArchiveStore
from ..configuration import load_configuration
from ..errors import ArchiveError, ItemNotFoundError, TransferError, TransportError
from ..hashing import content_hash
from ..logging_utils import setup_logging_from_config
from .conflict import ConflictResolver, ConflictStrategy
from .events import DEFAULT_HISTORY_LIMIT, EventKind, EventStream, SyncEvent
from .manifest import Manifest
from .protocol import PathChange, SyncDelta, compute_delta
from .transport import DeviceTransport

logger = logging.getLogger("pocketsync.sync.engine")

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class SyncSettings:
    """Settings for sync passes."""

    enabled: bool = True
    conflict_strategy: str = ConflictStrategy.REMOTE_WINS.value
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SyncSettings":
        raw = config.get("sync", {}) if config else {}
        return cls(
            enabled=bool(raw.get("enabled", True)),
            conflict_strategy=str(raw.get("conflict_strategy", ConflictStrategy.REMOTE_WINS.value)),
            history_limit=int(raw.get("history_limit", DEFAULT_HISTORY_LIMIT)),
        )

    @property
    def strategy(self) -> ConflictStrategy:
        try:
            return ConflictStrategy(self.conflict_strategy)
        except ValueError:
            logger.warning(
                "Unknown conflict strategy '%s'; using remote_wins",
                self.conflict_strategy,
            )
            return ConflictStrategy.REMOTE_WINS


@dataclass
class SyncResult:
    """Result of a sync pass."""

    success: bool
    skipped: bool = False
    imported: List[str] = field(default_factory=list)
    exported: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    deleted_remote: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    transport_error: Optional[str] = None
    message: str = ""
    duration: float = 0.0

    @property
    def partial(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "skipped": self.skipped,
            "imported": self.imported,
            "exported": self.exported,
            "deleted": self.deleted,
            "deleted_remote": self.deleted_remote,
            "failed": self.failed,
            "transport_error": self.transport_error,
            "message": self.message,
            "duration": self.duration,
        }


class SynchronizationEngine:
    """Runs sync passes between an :class:`ArchiveStore` and a device.

    Only one pass runs at a time. A call made while a pass is in flight
    returns a skipped result straight away instead of waiting.
    """

    def __init__(
        self,
        store: ArchiveStore,
        transport: DeviceTransport,
        settings: Optional[SyncSettings] = None,
        events: Optional[EventStream] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.store = store
        self.transport = transport
        self.settings = settings or SyncSettings()
        self.events = events or EventStream(self.settings.history_limit)
        self.progress_callback = progress_callback
        self.resolver = ConflictResolver(self.settings.strategy)
        self.last_result: Optional[SyncResult] = None
        self._in_flight = threading.Lock()

    @property
    def is_synchronizing(self) -> bool:
        return self._in_flight.locked()

    def sync_with_device(self) -> SyncResult:
        """Run one sync pass unless another one is already in flight."""
        if not self.settings.enabled:
            return SyncResult(success=False, message="Sync is disabled")

        if not self._in_flight.acquire(blocking=False):
            logger.info("Sync already in progress; ignoring request")
            return SyncResult(success=True, skipped=True, message="Sync already in progress")

        started = time.monotonic()
        try:
            result = self._run_pass()
            result.duration = time.monotonic() - started
            self.last_result = result
            logger.info("Sync pass finished in %.3fs: %s", result.duration, result.message)
            return result
        finally:
            self._in_flight.release()

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------

    def _run_pass(self) -> SyncResult:
        with self.store.locked():
            local_manifest = Manifest.build(self.store.snapshot(), source="local")
            synchronized = self.store.synchronized_paths()
            tombstones = self.store.tombstones()
        self._report_progress("Built local manifest", 0, 0)

        try:
            remote_manifest = self.transport.fetch_remote_manifest()
        except TransportError as e:
            logger.warning("Device unreachable, sync aborted: %s", e)
            return SyncResult(
                success=False,
                transport_error=str(e),
                message=f"Transport error: {e}",
            )

        delta = compute_delta(
            local_manifest,
            remote_manifest,
            synchronized=synchronized,
            tombstones=tombstones,
            resolver=self.resolver,
        )
        logger.info("Sync delta: %s", delta.summary())

        result = SyncResult(success=True)
        for change in delta.unchanged:
            self._settle_unchanged(change)

        steps = [
            (delta.to_import, self._import),
            (delta.to_export, self._export),
            (delta.to_delete, self._delete),
            (delta.to_delete_remote, self._delete_remote),
        ]
        total = delta.total_changes
        current = 0
        for changes, apply in steps:
            for change in changes:
                current += 1
                apply(change, result)
                self._report_progress(f"{change.action.value} {change.path}", current, total)

        result.success = not result.failed
        result.message = self._summarize(delta, result)
        return result

    def _import(self, change: PathChange, result: SyncResult) -> None:
        existing = self.store.find_by_path(change.path)
        if existing is not None:
            if change.conflict and not self._transition(existing.id, ItemStatus.IMPORTED):
                return
            if not self._transition(existing.id, ItemStatus.SYNCHRONIZING):
                return

        try:
            content = self.transport.fetch_content(change.path)
            if change.remote_hash and content_hash(content) != change.remote_hash:
                raise TransferError(change.path, "content does not match device manifest")
        except (TransportError, TransferError) as e:
            self._fail(change.path, existing, e, result)
            return

        with self.store.locked():
            if existing is not None:
                try:
                    current = self.store.get(existing.id)
                except ItemNotFoundError:
                    logger.info("Item at %s was wiped during import", change.path)
                    return
                if current.status is ItemStatus.DELETED:
                    logger.info("Item at %s was deleted during import", change.path)
                    return
                self.store.upsert(replace(current, content=content, status=ItemStatus.SYNCHRONIZED))
            else:
                try:
                    item = ArchiveItem.from_path(change.path, content, status=ItemStatus.SYNCHRONIZED)
                    self.store.upsert(item)
                except (ValueError, ArchiveError) as e:
                    self._fail(change.path, None, e, result)
                    return

        result.imported.append(change.path)
        self.events.emit(SyncEvent(EventKind.IMPORTED, change.path))

    def _export(self, change: PathChange, result: SyncResult) -> None:
        item = self.store.find_by_path(change.path)
        if item is None or item.hash != change.local_hash:
            logger.info("Skipping export of %s; item changed since the manifest", change.path)
            return
        if not self._transition(item.id, ItemStatus.SYNCHRONIZING):
            return

        try:
            self.transport.send_content(change.path, item.content)
        except (TransportError, TransferError) as e:
            self._fail(change.path, item, e, result)
            return

        self._transition(item.id, ItemStatus.SYNCHRONIZED, expected_hash=item.hash)
        result.exported.append(change.path)
        self.events.emit(SyncEvent(EventKind.EXPORTED, change.path))

    def _delete(self, change: PathChange, result: SyncResult) -> None:
        with self.store.locked():
            item = self.store.find_by_path(change.path)
            if item is None or item.hash != change.local_hash:
                logger.info("Skipping delete of %s; item changed since the manifest", change.path)
                return
            self.store.remove(item.id)
        result.deleted.append(change.path)
        self.events.emit(SyncEvent(EventKind.DELETED, change.path))

    def _delete_remote(self, change: PathChange, result: SyncResult) -> None:
        try:
            self.transport.delete_path(change.path)
        except (TransportError, TransferError) as e:
            self._fail(change.path, None, e, result)
            return
        result.deleted_remote.append(change.path)
        self.events.emit(SyncEvent(EventKind.DELETED, change.path))

    def _settle_unchanged(self, change: PathChange) -> None:
        item = self.store.find_by_path(change.path)
        if item is not None and item.status is not ItemStatus.SYNCHRONIZED:
            self._transition(item.id, ItemStatus.SYNCHRONIZED, expected_hash=change.local_hash)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(
        self,
        item_id: str,
        status: ItemStatus,
        expected_hash: Optional[str] = None,
    ) -> bool:
        """Move an item to ``status`` if it still exists in a compatible state."""
        with self.store.locked():
            try:
                current = self.store.get(item_id)
            except ItemNotFoundError:
                logger.info("Item %s disappeared during sync", item_id)
                return False
            if expected_hash is not None and current.hash != expected_hash:
                logger.info("Item %s changed during sync; leaving status alone", current.path)
                return False
            if not current.status.can_transition_to(status):
                logger.info(
                    "Item %s is %s; not moving it to %s",
                    current.path,
                    current.status.value,
                    status.value,
                )
                return False
            self.store.set_status(item_id, status)
            return True

    def _fail(
        self,
        path: str,
        item: Optional[ArchiveItem],
        error: Exception,
        result: SyncResult,
    ) -> None:
        logger.error("Failed to sync %s: %s", path, error)
        result.failed[path] = str(error)
        if item is not None:
            self._transition(item.id, ItemStatus.ERROR)

    def _summarize(self, delta: SyncDelta, result: SyncResult) -> str:
        if not delta.has_changes:
            return "Already in sync"
        parts = [delta.summary()]
        if result.failed:
            parts.append(f"{len(result.failed)} failed")
        return "; ".join(parts)

    def _report_progress(self, message: str, current: int, total: int) -> None:
        """Report progress if callback is configured."""
        if self.progress_callback:
            self.progress_callback(message, current, total)
        logger.debug("Sync progress: %s (%d/%d)", message, current, total)


_shared_engine: Optional[SynchronizationEngine] = None
_shared_lock = threading.Lock()


def shared_engine(
    transport: Optional[DeviceTransport] = None,
    data_dir: Optional[Path] = None,
) -> SynchronizationEngine:
    """Return the process-wide engine, creating it on first use.

    The first call must supply the transport. It loads the configuration
    bundle for ``data_dir`` (``$POCKETSYNC_HOME`` by default), applies its
    ``logging`` section and builds the engine from its ``sync`` section.
    Tests should build their own :class:`SynchronizationEngine` instead of
    going through this.
    """
    global _shared_engine
    with _shared_lock:
        if _shared_engine is None:
            if transport is None:
                raise RuntimeError("shared_engine() needs a transport on first use")
            bundle = load_configuration(data_dir)
            log_path = setup_logging_from_config(bundle.data_dir, bundle.section("logging"))
            for diagnostic in bundle.diagnostics:
                logger.warning("Configuration %s: %s", diagnostic.level, diagnostic.message)
            settings = SyncSettings.from_config(bundle.merged)
            _shared_engine = SynchronizationEngine(
                ArchiveStore(MemoryItemStorage()),
                transport,
                settings=settings,
            )
            logger.info(
                "Shared engine ready (config %s, strategy %s, log %s)",
                bundle.status,
                settings.strategy.value,
                log_path,
            )
        return _shared_engine


__all__ = [
    "SynchronizationEngine",
    "SyncSettings",
    "SyncResult",
    "shared_engine",
]
