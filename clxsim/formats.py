"""Binary records written to the event and diagnostics files."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, ClassVar, Iterator

_INFO = struct.Struct("<iiidd???")
_HEADER = struct.Struct("<iii")
_SEGA = struct.Struct("<ii4d??6x")
_S3 = struct.Struct("<iii4x4d??6x")


def _read_record(stream: BinaryIO, size: int, what: str) -> bytes | None:
    data = stream.read(size)
    if not data:
        return None
    if len(data) != size:
        raise ValueError(f"truncated {what} record: got {len(data)} of {size} bytes")
    return data


@dataclass
class Info:
    """Per-event diagnostic information (packed, 31 bytes)."""

    SIZE: ClassVar[int] = _INFO.size

    event_number: int
    projectile_index: int
    recoil_index: int
    beam_energy: float
    theta_cm: float
    projectile_ds: bool
    projectile_us: bool
    recoil: bool

    def pack(self) -> bytes:
        return _INFO.pack(
            self.event_number,
            self.projectile_index,
            self.recoil_index,
            self.beam_energy,
            self.theta_cm,
            self.projectile_ds,
            self.projectile_us,
            self.recoil,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Info":
        return cls(*_INFO.unpack(data))


@dataclass
class Header:
    """Event header: event number and the counts of S3 and SeGA records."""

    SIZE: ClassVar[int] = _HEADER.size

    event_number: int
    n_s3: int
    n_sega: int

    def pack(self) -> bytes:
        return _HEADER.pack(self.event_number, self.n_s3, self.n_sega)

    @classmethod
    def unpack(cls, data: bytes) -> "Header":
        return cls(*_HEADER.unpack(data))


@dataclass
class SeGAData:
    """One germanium hit; energy in keV, position in cm."""

    SIZE: ClassVar[int] = _SEGA.size

    det: int
    seg: int
    energy: float
    x: float
    y: float
    z: float
    fep: bool
    projectile_fep: bool

    def pack(self) -> bytes:
        return _SEGA.pack(
            self.det, self.seg, self.energy, self.x, self.y, self.z,
            self.fep, self.projectile_fep,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "SeGAData":
        return cls(*_SEGA.unpack(data))


@dataclass
class S3Data:
    """One silicon hit; energy in MeV, position in cm."""

    SIZE: ClassVar[int] = _S3.size

    det: int
    ring: int
    sector: int
    energy: float
    x: float
    y: float
    z: float
    projectile: bool
    recoil: bool

    def pack(self) -> bytes:
        return _S3.pack(
            self.det, self.ring, self.sector, self.energy, self.x, self.y, self.z,
            self.projectile, self.recoil,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "S3Data":
        return cls(*_S3.unpack(data))

    def is_ring(self) -> bool:
        """True when the hit is on a ring rather than a sector."""
        return bool(self.ring)

    def __gt__(self, other: "S3Data") -> bool:
        return self.energy > other.energy

    def __lt__(self, other: "S3Data") -> bool:
        return self.energy < other.energy


def read_events(
    stream: BinaryIO,
) -> Iterator[tuple[Header, list[S3Data], list[SeGAData]]]:
    """Yield (header, S3 hits, SeGA hits) for each event in an output file."""
    while True:
        raw = _read_record(stream, Header.SIZE, "header")
        if raw is None:
            return
        header = Header.unpack(raw)
        s3_hits = []
        for _ in range(header.n_s3):
            data = _read_record(stream, S3Data.SIZE, "S3")
            if data is None:
                raise ValueError("unexpected end of file inside an event")
            s3_hits.append(S3Data.unpack(data))
        sega_hits = []
        for _ in range(header.n_sega):
            data = _read_record(stream, SeGAData.SIZE, "SeGA")
            if data is None:
                raise ValueError("unexpected end of file inside an event")
            sega_hits.append(SeGAData.unpack(data))
        yield header, s3_hits, sega_hits


def read_info(stream: BinaryIO) -> Iterator[Info]:
    """Yield every diagnostic record in a diagnostics file."""
    while True:
        raw = _read_record(stream, Info.SIZE, "diagnostics")
        if raw is None:
            return
        yield Info.unpack(raw)