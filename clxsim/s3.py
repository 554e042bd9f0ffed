"""Segmentation of the two S3 annular silicon detectors (lengths in mm)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class S3Segment:
    """One ring-sector cell of an S3 detector."""

    copy: int
    det: int
    ring: int
    sector: int
    inner_radius: float
    outer_radius: float
    half_thickness: float
    start_phi: float
    delta_phi: float
    z: float
    colour: str


class S3:
    """A pair of S3 detectors: det 0 upstream, det 1 downstream."""

    def __init__(self):
        self.inner_radius = 11.0
        self.outer_radius = 35.0
        self.thickness = 0.3
        self.n_rings = 24
        self.n_sectors = 32

    def copy_number(self, det: int, ring: int, sector: int) -> int:
        """Copy number of a geometric cell, encoding det, ring and sector."""
        if det not in (0, 1):
            raise ValueError(f"detector must be 0 or 1, got {det}")
        if not 0 <= ring < self.n_rings:
            raise ValueError(f"ring {ring} out of range")
        if not 0 <= sector < self.n_sectors:
            raise ValueError(f"sector {sector} out of range")
        copy = det * 10000 + (ring + 1) * 100
        if sector < 9:
            return copy + 9 - sector
        return copy + 32 - (sector - 9)

    def segments(self, us_offset: float, ds_offset: float) -> Iterator[S3Segment]:
        """Every cell of both detectors, placed at -us_offset and +ds_offset along z."""
        dr = (self.outer_radius - self.inner_radius) / self.n_rings
        dphi = 2.0 * math.pi / self.n_sectors
        for det in (0, 1):
            z = -us_offset if det == 0 else ds_offset
            for ring in range(self.n_rings):
                inner = self.inner_radius + ring * dr
                for sector in range(self.n_sectors):
                    yield S3Segment(
                        copy=self.copy_number(det, ring, sector),
                        det=det,
                        ring=ring,
                        sector=sector,
                        inner_radius=inner,
                        outer_radius=inner + dr,
                        half_thickness=self.thickness / 2.0,
                        start_phi=(sector - 0.5) * dphi,
                        delta_phi=dphi,
                        z=z,
                        colour="yellow" if ring % 2 == sector % 2 else "red",
                    )