"""Binary encoding of radio region provisioning data."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import List, Optional

# Little-endian: country length, then band count, then fixed-size bands.
_COUNTRY_LEN = struct.Struct("<B")
_BAND_COUNT = struct.Struct("<H")
_BAND = struct.Struct("<IIiI")


@dataclass(frozen=True)
class Band:
    """A frequency band the device may transmit on."""

    start: int  # Hz
    end: int  # Hz
    max_power: int  # dBm, may be negative
    duty_cycle: int

    def encode(self) -> bytes:
        try:
            return _BAND.pack(self.start, self.end, self.max_power, self.duty_cycle)
        except struct.error as exc:
            raise ValueError(f"Band {self} does not fit the wire format: {exc}") from exc


@dataclass(frozen=True)
class Region:
    """Country code plus the ordered list of permitted bands."""

    country: Optional[str] = None
    bands: List[Band] = field(default_factory=list)

    def encode(self) -> bytes:
        # A missing country is an empty byte string, not a null marker.
        country = (self.country or "").encode("utf-8")
        if len(country) > 0xFF:
            raise ValueError(f"Country code '{self.country}' is too long")
        if len(self.bands) > 0xFFFF:
            raise ValueError(f"Too many bands ({len(self.bands)})")
        parts = [
            _COUNTRY_LEN.pack(len(country)),
            country,
            _BAND_COUNT.pack(len(self.bands)),
        ]
        parts.extend(band.encode() for band in self.bands)
        return b"".join(parts)


__all__ = ["Band", "Region"]
