"""Interface to the device transport collaborator."""

from __future__ import annotations

from typing import Protocol

from .manifest import Manifest


class DeviceTransport(Protocol):
    """Request/response channel to the device.

    Implementations own timeouts and retries of the underlying link and
    raise :class:`pocketsync.errors.TransportError` when a request fails.
    """

    def fetch_remote_manifest(self) -> Manifest:
        ...

    def fetch_content(self, path: str) -> bytes:
        ...

    def send_content(self, path: str, data: bytes) -> None:
        ...

    def delete_path(self, path: str) -> None:
        ...


__all__ = ["DeviceTransport"]
