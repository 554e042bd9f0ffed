"""Geometry of the Segmented Germanium Array (lengths in mm, angles in radians).

Each of the 16 detectors is a cylindrical crystal cut into 4 slices in phi
and 8 in z. Every slice is wrapped in a thin dead layer. Detectors 0-7 sit
downstream of the target and detectors 8-15 upstream.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

Vector = tuple[float, float, float]

_N_DETECTORS = 16
_SIN45 = math.sin(math.radians(45.0))
_COS45 = math.cos(math.radians(45.0))


@dataclass(frozen=True)
class SegmentPlacement:
    """One crystal segment of one detector, with the dead layer around it."""

    copy: int
    det: int
    segment: int
    phi_segment: int
    z_segment: int
    inner_radius: float
    outer_radius: float
    half_length: float
    start_phi: float
    delta_phi: float
    position: Vector
    colour: str
    dead_layer_inner_radius: float
    dead_layer_outer_radius: float
    dead_layer_half_length: float


class SeGA:
    """Dimensions and placement of the SeGA crystals and their housings."""

    def __init__(self):
        # Crystal (half-length, as for every length along a cylinder axis)
        self.length = 40.25
        self.outer_radius = 31.65
        self.finger_radius = 5.0

        # Central dead layer around the finger
        self.dl_inner_radius = self.finger_radius
        self.dl_outer_radius = self.dl_inner_radius + 0.3

        # Dead layer around each segment
        self.segment_dead_layer = 0.3

        # Inner and outer cans
        self.icam_outer_radius = 37.3
        self.icam_inner_radius = self.icam_outer_radius - 0.5
        self.icam_length = self.length

        self.ocan_thickness = 0.5
        self.ocan_outer_radius = 43.25
        self.ocan_inner_radius = self.ocan_outer_radius - self.ocan_thickness
        self.ocan_length = 100.0
        self.ocan_offset: Vector = (
            0.0, 0.0, self.ocan_length - self.length - self.ocan_thickness,
        )

        self.preamp_radius = self.ocan_inner_radius - 0.05
        self.preamp_length = self.ocan_length - self.length - 3.0
        self.preamp_offset: Vector = (0.0, 0.0, self.ocan_offset[2] + self.length)

        self.neck_radius = 33.3 / 2.0
        self.neck_length = 144.7 / 2.0
        self.neck_offset: Vector = (
            self.ocan_outer_radius + self.neck_length * _SIN45 + self.neck_radius * _COS45,
            0.0,
            self.ocan_length + self.neck_length * _COS45,
        )

        self.cryo_thickness = 4.0
        self.cryo_outer_radius = 230.6 / 2.0 - 1.1
        self.cryo_inner_radius = self.cryo_outer_radius - self.cryo_thickness
        self.cryo_base_thickness = 15.0 / 2.0
        self.cryo_base_offset: Vector = (
            self.neck_offset[0] + self.neck_length * _SIN45 + self.cryo_base_thickness * _SIN45,
            0.0,
            self.neck_offset[2] + self.neck_length * _COS45 + self.cryo_base_thickness * _COS45,
        )
        self.cryo_length = 346.0 / 2.0
        self.cryo_offset: Vector = (
            self.cryo_base_offset[0] + self.cryo_base_thickness * _SIN45
            + self.cryo_length * _SIN45,
            0.0,
            self.cryo_base_offset[2] + self.cryo_base_thickness * _COS45
            + self.cryo_length * _COS45,
        )

        self.phi_segments = 4
        self.z_segments = 8

        # Distance of each crystal axis from the beam axis
        self.radial_distance = 129.75

    @property
    def n_detectors(self) -> int:
        return _N_DETECTORS

    def _check_detector(self, det: int) -> None:
        if not 0 <= det < _N_DETECTORS:
            raise ValueError(f"detector must be between 0 and {_N_DETECTORS - 1}, got {det}")

    def _phi(self, det: int) -> float:
        return math.radians(det * (360.0 / 8.0) + 180.0 / 8.0)

    def _z(self, det: int) -> float:
        zd = self.length + 2.0 * self.ocan_thickness + 6.0
        return -zd if det > 7 else zd

    def detector_position(self, det: int, z_offset: float = 0.0) -> Vector:
        """Centre of the crystal of detector ``det``."""
        self._check_detector(det)
        phi = self._phi(det)
        return (
            self.radial_distance * math.cos(phi),
            self.radial_distance * math.sin(phi),
            self._z(det) + z_offset,
        )

    def segment_placements(self, det: int, z_offset: float = 0.0) -> Iterator[SegmentPlacement]:
        """The 32 segments of detector ``det``, numbered 1 to 32."""
        x, y, z = self.detector_position(det, z_offset)
        dls = self.segment_dead_layer
        zsegs = self.z_segments
        delta_phi = math.radians(360 // self.phi_segments)
        segment = 1
        for i in range(self.phi_segments):
            for j in range(zsegs):
                inner = 0.0 if j == zsegs - 1 else self.dl_outer_radius
                zshift = j * 2.0 * self.length / zsegs - (zsegs - 1) / zsegs * self.length
                yield SegmentPlacement(
                    copy=(det + 1) * 100 + segment,
                    det=det,
                    segment=segment,
                    phi_segment=i,
                    z_segment=j,
                    inner_radius=inner + dls,
                    outer_radius=self.outer_radius - dls,
                    half_length=self.length / zsegs - 0.5 * dls,
                    start_phi=i * delta_phi,
                    delta_phi=delta_phi,
                    position=(x, y, z + zshift),
                    colour="green" if i % 2 == j % 2 else "blue",
                    dead_layer_inner_radius=inner,
                    dead_layer_outer_radius=self.outer_radius,
                    dead_layer_half_length=self.length / zsegs,
                )
                segment += 1

    def placements(self, z_offset: float = 0.0) -> Iterator[SegmentPlacement]:
        """Every segment of all 16 detectors."""
        for det in range(_N_DETECTORS):
            yield from self.segment_placements(det, z_offset)