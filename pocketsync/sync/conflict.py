"""Conflict resolution strategies for archive synchronization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .protocol import PathChange, SyncAction

logger = logging.getLogger("pocketsync.sync.conflict")


class ConflictStrategy(str, Enum):
    """Strategies for resolving sync conflicts."""
    REMOTE_WINS = "remote_wins"
    LOCAL_WINS = "local_wins"


@dataclass
class ConflictResolution:
    """Result of conflict resolution."""

    change: PathChange
    action: SyncAction  # IMPORT or EXPORT


class ConflictResolver:
    """Decides which side wins when both hold a path with different content.

    The device is the source of truth by default: it can be modified
    out-of-band, so a mismatching hash means the local copy is stale.
    """

    def __init__(self, strategy: ConflictStrategy = ConflictStrategy.REMOTE_WINS):
        self.strategy = strategy

    def resolve(self, change: PathChange) -> ConflictResolution:
        """Resolve a single conflict based on the configured strategy."""
        if self.strategy == ConflictStrategy.LOCAL_WINS:
            action = SyncAction.EXPORT
        else:
            action = SyncAction.IMPORT
        logger.info("Conflict on %s: %s -> %s", change.path, self.strategy.value, action.value)
        return ConflictResolution(change=change, action=action)


__all__ = ["ConflictStrategy", "ConflictResolution", "ConflictResolver"]
