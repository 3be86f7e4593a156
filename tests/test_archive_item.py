"""Tests for archive item records."""

from __future__ import annotations

import pytest

from pocketsync.archive import ArchiveItem, FileType, ItemStatus, split_path
from pocketsync.hashing import content_hash


def test_path_is_derived_from_type_and_name():
    item = ArchiveItem(name="office", file_type=FileType.RFID, content=b"id")

    assert item.file_name == "office.rfid"
    assert item.path == "/ext/lfrfid/office.rfid"


def test_hash_follows_content():
    item = ArchiveItem(name="door", file_type=FileType.NFC, content=b"one")
    changed = item.with_content(b"two")

    assert item.hash == content_hash(b"one")
    assert changed.hash == content_hash(b"two")
    assert changed.id == item.id


def test_from_path_parses_device_paths():
    item = ArchiveItem.from_path("/ext/infrared/tv.ir", b"data", status=ItemStatus.SYNCHRONIZED)

    assert item.file_type is FileType.INFRARED
    assert item.name == "tv"
    assert item.path == "/ext/infrared/tv.ir"
    assert item.status is ItemStatus.SYNCHRONIZED


@pytest.mark.parametrize(
    "path",
    ["/int/nfc/a.nfc", "/ext/unknown/a.nfc", "/ext/nfc/a.sub", "/ext/nfc/.nfc", "/ext/nfc"],
)
def test_split_path_rejects_foreign_paths(path: str):
    with pytest.raises(ValueError):
        split_path(path)


@pytest.mark.parametrize("path", ["/ext/nfc//a.nfc", "/ext/nfc/a.nfc/", "ext/nfc/a.nfc", "//ext/nfc/a.nfc"])
def test_from_path_rejects_non_canonical_paths(path: str):
    with pytest.raises(ValueError):
        ArchiveItem.from_path(path, b"data")


def test_invalid_name_rejected():
    with pytest.raises(ValueError):
        ArchiveItem(name="a/b", file_type=FileType.NFC)


def test_record_round_trip_keeps_identity_and_flags():
    item = ArchiveItem(
        name="gate",
        file_type=FileType.SUBGHZ,
        content=b"\x00\x01raw",
        is_favorite=True,
        status=ItemStatus.IMPORTED,
    )

    restored = ArchiveItem.from_dict(item.to_dict())

    assert restored == item
    assert restored.hash == item.hash


def test_status_transitions():
    assert ItemStatus.NONE.can_transition_to(ItemStatus.IMPORTED)
    assert ItemStatus.IMPORTED.can_transition_to(ItemStatus.SYNCHRONIZING)
    assert ItemStatus.SYNCHRONIZING.can_transition_to(ItemStatus.SYNCHRONIZED)
    assert ItemStatus.SYNCHRONIZING.can_transition_to(ItemStatus.ERROR)
    assert ItemStatus.ERROR.can_transition_to(ItemStatus.SYNCHRONIZING)
    assert ItemStatus.SYNCHRONIZED.can_transition_to(ItemStatus.IMPORTED)
    assert not ItemStatus.IMPORTED.can_transition_to(ItemStatus.ERROR)
    for status in ItemStatus:
        if status is not ItemStatus.DELETED:
            assert status.can_transition_to(ItemStatus.DELETED)
            assert not ItemStatus.DELETED.can_transition_to(status)


def test_record_round_trip_keeps_tombstone_flag():
    item = ArchiveItem(
        name="gate",
        file_type=FileType.NFC,
        status=ItemStatus.DELETED,
        was_synchronized=True,
    )

    restored = ArchiveItem.from_dict(item.to_dict())

    assert restored.was_synchronized is True
    legacy = {key: value for key, value in item.to_dict().items() if key != "was_synchronized"}
    assert ArchiveItem.from_dict(legacy).was_synchronized is False
