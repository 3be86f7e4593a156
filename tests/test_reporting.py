"""Tests for rich text reports."""

from __future__ import annotations

from conftest import make_item
from pocketsync.archive import ItemStatus
from pocketsync.reporting import render_archive, render_delta, render_sync_result
from pocketsync.sync import Manifest, ManifestEntry, SyncResult, compute_delta


def test_render_archive_lists_items():
    items = [
        make_item("door", b"1", status=ItemStatus.SYNCHRONIZED, is_favorite=True),
        make_item("gate", b"2", status=ItemStatus.ERROR),
    ]

    output = render_archive(items)

    assert "Archive (2 items)" in output
    assert "/ext/nfc/door.nfc" in output
    assert "synchronized" in output
    assert "error" in output


def test_render_delta_sections():
    delta = compute_delta(
        Manifest.from_entries([ManifestEntry("/ext/nfc/a.nfc", "h1")]),
        Manifest.from_entries([ManifestEntry("/ext/nfc/a.nfc", "h2")]),
    )

    output = render_delta(delta)

    assert "To Import:" in output
    assert "/ext/nfc/a.nfc (conflict)" in output


def test_render_delta_without_changes():
    delta = compute_delta(Manifest(), Manifest())

    assert render_delta(delta) == "[sync] No changes."


def test_render_sync_result_variants():
    partial = SyncResult(
        success=False,
        imported=["/ext/nfc/a.nfc"],
        failed={"/ext/nfc/b.nfc": "timeout"},
        message="2 to import",
    )

    output = render_sync_result(partial)

    assert "partial" in output
    assert "/ext/nfc/b.nfc: timeout" in output
    assert render_sync_result(SyncResult(success=True, skipped=True, message="busy")) == "[sync] busy"
    assert "unreachable" in render_sync_result(
        SyncResult(success=False, transport_error="unreachable")
    )
