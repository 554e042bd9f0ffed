"""Primary particles of each event: scattered ions or source gamma rays.

Lengths are in mm, energies in MeV and angles in radians.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass

from clxsim.modes import Mode
from clxsim.reaction import Reaction

_log = logging.getLogger(__name__)

Vector = tuple[float, float, float]

# Shape of one S3 detector as used for the optimisation check.
_S3_INNER_RADIUS = 11.0
_S3_OUTER_RADIUS = 35.0
_S3_HALF_THICKNESS = 0.15
_TOLERANCE = 0.5e-9

_MAX_ATTEMPTS = 1_000_000


@dataclass(frozen=True)
class Vertex:
    """One primary particle: what it is, its kinetic energy, start and direction."""

    particle: str
    energy: float
    position: Vector
    direction: Vector


def _sub(a: Vector, b: Vector) -> Vector:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _direction(theta: float, phi: float) -> Vector:
    perp = abs(math.sin(theta))
    return (perp * math.cos(phi), perp * math.sin(phi), math.cos(theta))


def _rotate_x(v: Vector, angle: float) -> Vector:
    c, s = math.cos(angle), math.sin(angle)
    x, y, z = v
    return (x, c * y - s * z, s * y + c * z)


def _rotate_y(v: Vector, angle: float) -> Vector:
    c, s = math.cos(angle), math.sin(angle)
    x, y, z = v
    return (c * x + s * z, y, c * z - s * x)


class PrimaryGenerator:
    """Creates the primary vertices of each event for the chosen mode."""

    def __init__(self, reaction: Reaction | None = None, rng=None):
        self.reaction = reaction if reaction is not None else Reaction()
        self.rng = rng if rng is not None else random.Random()
        self.mode = Mode.SOURCE

        # Incoming beam
        self.beam_x = 0.0
        self.beam_y = 0.0
        self.beam_ax = 0.0
        self.beam_ay = 0.0
        self.beam_en = 300.0
        self.sigma_x = 0.0
        self.sigma_y = 0.0
        self.sigma_ax = 0.0
        self.sigma_ay = 0.0
        self.sigma_en = 0.0

        self.delta_e = 0.0

        # Gamma-ray source
        self.source_energy = -1.0
        self.source_position: Vector = (0.0, 0.0, 0.0)

        # Scattering-angle optimisation
        self.optimize = False
        self.only_p = False
        self.only_r = False

        # Energy loss of the beam in the target
        self.dedx = 0.0
        self.width = 0.0

        self.s3_upstream: Vector = (0.0, 0.0, 0.0)
        self.s3_downstream: Vector = (0.0, 0.0, 0.0)

        # Event-by-event diagnostics
        self.projectile_index = 0
        self.recoil_index = 0
        self._theta = 0.0
        self._energy = 0.0

    # Configuration

    def set_mode(self, name: str) -> None:
        """Select the mode by name: "Scattering", "Source" or "Full"."""
        self.mode = Mode.parse(name)

    def only_projectile(self) -> None:
        self.only_p = True
        self.only_r = False

    def only_recoil(self) -> None:
        self.only_r = True
        self.only_p = False

    @property
    def is_simple_source(self) -> bool:
        return self.source_energy > 0.0

    @property
    def theta_cm(self) -> float:
        """CM scattering angle of the last event, in degrees."""
        return math.degrees(self._theta)

    @property
    def beam_energy(self) -> float:
        """Beam energy at the reaction point of the last event, in MeV."""
        return self._energy

    def get_z(self, projectile: bool) -> int:
        return self.reaction.beam_z if projectile else self.reaction.recoil_z

    def get_a(self, projectile: bool) -> int:
        return self.reaction.beam_a if projectile else self.reaction.recoil_a

    def get_mass(self, projectile: bool) -> float:
        return self.reaction.beam_mass if projectile else self.reaction.recoil_mass

    def update(self, us_offset=0.0, ds_offset=0.0, target_thickness=0.0, dedx=0.0) -> None:
        """Prepare the generator for a run with the current settings.

        ``us_offset`` and ``ds_offset`` place the S3 detectors, and
        ``target_thickness`` (mm) with ``dedx`` (MeV/mm) give the beam's
        energy loss in the target.
        """
        if self.mode is Mode.SCATTERING:
            self._update_reaction(us_offset, ds_offset, target_thickness, dedx)
        elif self.mode is Mode.SOURCE:
            if self.is_simple_source:
                _log.info(
                    "Simple isotropic gamma-ray of %g keV will be emitted each event",
                    self.source_energy * 1000.0,
                )
        else:
            raise ValueError("full mode needs excitation level data that this generator lacks")

    def _update_reaction(self, us_offset, ds_offset, target_thickness, dedx) -> None:
        if self.reaction.beam_mass <= 0.0 or self.reaction.recoil_mass <= 0.0:
            raise ValueError("projectile and recoil masses must be set before a run")
        if self.only_p:
            self.reaction.set_only_p()
        if self.only_r:
            self.reaction.set_only_r()
        self.reaction.construct_rutherford_cm(self.beam_en, self.delta_e)

        self.s3_upstream = (0.0, 0.0, -us_offset)
        self.s3_downstream = (0.0, 0.0, ds_offset)
        if target_thickness > 0.0:
            self.width = target_thickness
            self.dedx = dedx

    # Generation

    def generate(self) -> list[Vertex]:
        """Primary vertices of one event for the current mode."""
        if self.mode is Mode.SCATTERING:
            return self.generate_scattering()
        if self.mode is Mode.SOURCE:
            return self.generate_source()
        raise ValueError("full mode needs excitation level data that this generator lacks")

    def generate_scattering(self) -> list[Vertex]:
        """A projectile and a recoil leaving a Rutherford scattering event."""
        rng = self.rng
        reac = self.reaction
        for _ in range(_MAX_ATTEMPTS):
            theta = reac.sample_rutherford_cm(rng)
            energy = rng.gauss(self.beam_en, self.sigma_en)
            depth = rng.random() * self.width
            energy -= self.dedx * depth

            pos = (
                rng.gauss(self.beam_x, self.sigma_x),
                rng.gauss(self.beam_y, self.sigma_y),
                -(self.width / 2.0) + depth,
            )

            bdir = _direction(reac.theta_lab(theta, energy, self.delta_e),
                              rng.uniform(-math.pi, math.pi))
            bphi = math.atan2(bdir[1], bdir[0])
            rdir = _direction(reac.recoil_theta_lab(theta, energy, self.delta_e),
                              bphi - math.pi)

            ax = rng.gauss(self.beam_ax, self.sigma_ax)
            ay = rng.gauss(self.beam_ay, self.sigma_ay)
            bdir = _rotate_y(_rotate_x(bdir, ax), ay)
            rdir = _rotate_y(_rotate_x(rdir, ax), ay)

            if self.optimize and not self.check_intersections(bdir, rdir, pos):
                continue

            self._theta = theta
            self._energy = energy
            return [
                Vertex("projectile", reac.ke_lab(theta, energy, self.delta_e), pos, bdir),
                Vertex("recoil", reac.recoil_ke_lab(theta, energy, self.delta_e), pos, rdir),
            ]
        raise RuntimeError("no sampled scattering angle sends a particle into an S3")

    def generate_source(self) -> list[Vertex]:
        """One isotropic gamma ray from the source position."""
        if not self.is_simple_source:
            raise ValueError("a positive source gamma-ray energy must be set")
        cos_theta = 2.0 * self.rng.random() - 1.0
        phi = 2.0 * math.pi * self.rng.random()
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
        direction = (sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta)
        return [Vertex("gamma", self.source_energy, tuple(self.source_position), direction)]

    # Detector acceptance

    def check_intersections(self, bdir: Vector, rdir: Vector, pos: Vector) -> bool:
        """Whether a particle of this event would enter an S3 detector."""
        down = _sub(self.s3_downstream, pos)
        up = _sub(self.s3_upstream, pos)
        projectile_hit = (
            (self.intersects(bdir, down) and bdir[2] > 0.0)
            or (self.intersects(bdir, up) and bdir[2] < 0.0)
        )
        if self.only_p:
            return projectile_hit
        recoil_hit = self.intersects(rdir, down)
        if self.only_r:
            return recoil_hit
        return projectile_hit or recoil_hit

    def intersects(self, direction: Vector, s3_position: Vector) -> bool:
        """Whether a ray along ``direction`` crosses the S3 at ``s3_position``.

        ``s3_position`` is relative to the start of the ray.
        """
        dx, dy, dz = direction
        norm = math.sqrt(dx * dx + dy * dy + dz * dz)
        if norm == 0.0 or dz == 0.0:
            return False
        cos_theta = dz / norm
        z = s3_position[2]
        margin = 0.99 * _S3_HALF_THICKNESS
        mag = (z - margin) / cos_theta if z > 0.0 else (z + margin) / cos_theta
        scale = mag / norm
        px, py, pz = _sub((dx * scale, dy * scale, dz * scale), s3_position)
        if abs(pz) > _S3_HALF_THICKNESS - _TOLERANCE:
            return False
        r2 = px * px + py * py
        return (_S3_INNER_RADIUS + _TOLERANCE) ** 2 <= r2 <= (_S3_OUTER_RADIUS - _TOLERANCE) ** 2