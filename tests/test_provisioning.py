"""Tests for region provisioning encoding."""

from __future__ import annotations

import struct

import pytest

from pocketsync.provisioning import Band, Region


def test_region_layout():
    region = Region(
        country="DE",
        bands=[Band(start=433_050_000, end=434_790_000, max_power=-10, duty_cycle=50)],
    )

    encoded = region.encode()

    assert encoded[:3] == b"\x02DE"
    assert struct.unpack("<H", encoded[3:5]) == (1,)
    assert struct.unpack("<IIiI", encoded[5:]) == (433_050_000, 434_790_000, -10, 50)


def test_bands_keep_their_order():
    bands = [Band(2, 3, 0, 0), Band(0, 1, 0, 0)]

    encoded = Region(country="US", bands=bands).encode()

    starts = [struct.unpack_from("<I", encoded, 5 + i * 16)[0] for i in range(2)]
    assert starts == [2, 0]


@pytest.mark.parametrize("country", [None, ""])
def test_missing_country_encodes_as_empty_bytes(country):
    assert Region(country=country).encode() == b"\x00\x00\x00"


def test_out_of_range_values_are_rejected():
    with pytest.raises(ValueError):
        Band(start=-1, end=0, max_power=0, duty_cycle=0).encode()
    with pytest.raises(ValueError):
        Band(start=0, end=2**32, max_power=0, duty_cycle=0).encode()
