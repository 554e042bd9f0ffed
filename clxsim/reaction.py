"""Two-body Coulomb-excitation kinematics and Rutherford angle sampling.

Energies are in MeV, angles in radians, cross sections in mm^2/sr.
"""

from __future__ import annotations

import logging
import math

import numpy as np

_log = logging.getLogger(__name__)

_DEG = math.pi / 180.0
_MILLIBARN = 1.0e-25  # mm^2
_N_BINS = 1800
_MIN_BIN = 50  # mandatory 5 deg CM cut to avoid the divergence
_DEFAULT_RANGE = (13.0 * _DEG, 180.0 * _DEG)


def _scale(ep: float, ex: float, beam_mass: float, recoil_mass: float) -> float:
    return math.sqrt(1.0 - (ex / ep) * (1.0 + beam_mass / recoil_mass))


def ke_lab(theta_cm, ep, beam_mass, recoil_mass, ex=0.0):
    """Projectile kinetic energy in the LAB frame."""
    tau = (beam_mass / recoil_mass) / _scale(ep, ex, beam_mass, recoil_mass)
    term1 = (recoil_mass / (beam_mass + recoil_mass)) ** 2
    term2 = 1.0 + tau * tau + 2.0 * tau * math.cos(theta_cm)
    term3 = ep - ex * (1.0 + beam_mass / recoil_mass)
    return term1 * term2 * term3


def recoil_ke_lab(theta_cm, ep, beam_mass, recoil_mass, ex=0.0):
    """Recoil kinetic energy in the LAB frame."""
    tau = 1.0 / _scale(ep, ex, beam_mass, recoil_mass)
    term1 = beam_mass * recoil_mass / (beam_mass + recoil_mass) ** 2
    term2 = 1.0 + tau * tau + 2.0 * tau * math.cos(math.pi - theta_cm)
    term3 = ep - ex * (1.0 + beam_mass / recoil_mass)
    return term1 * term2 * term3


def _beta(kinetic_energy: float, mass: float) -> float:
    gamma = kinetic_energy / mass + 1.0
    return math.sqrt(1.0 - 1.0 / (gamma * gamma))


def beta_lab(theta_cm, ep, beam_mass, recoil_mass, ex=0.0):
    """Projectile velocity (v/c) in the LAB frame."""
    return _beta(ke_lab(theta_cm, ep, beam_mass, recoil_mass, ex), beam_mass)


def recoil_beta_lab(theta_cm, ep, beam_mass, recoil_mass, ex=0.0):
    """Recoil velocity (v/c) in the LAB frame."""
    return _beta(recoil_ke_lab(theta_cm, ep, beam_mass, recoil_mass, ex), recoil_mass)


class Reaction:
    """A projectile scattering on a target nucleus."""

    def __init__(
        self,
        beam_z=48,
        beam_a=106,
        beam_mass=0.0,
        recoil_z=82,
        recoil_a=208,
        recoil_mass=0.0,
    ):
        self.beam_z = beam_z
        self.beam_a = beam_a
        self.beam_mass = beam_mass
        self.recoil_z = recoil_z
        self.recoil_a = recoil_a
        self.recoil_mass = recoil_mass
        self.recoil_threshold = 0.0
        self.only_p = False
        self.only_r = False
        self.good_lab_thetas: list[float] = []
        self._cdf: np.ndarray | None = None

    # Kinematics

    def theta_lab(self, theta_cm, ep, ex=0.0):
        tau = (self.beam_mass / self.recoil_mass) / _scale(
            ep, ex, self.beam_mass, self.recoil_mass
        )
        tan_theta = math.sin(theta_cm) / (math.cos(theta_cm) + tau)
        if tan_theta > 0:
            return math.atan(tan_theta)
        return math.atan(tan_theta) + math.pi

    def recoil_theta_lab(self, theta_cm, ep, ex=0.0):
        tau = 1.0 / _scale(ep, ex, self.beam_mass, self.recoil_mass)
        angle = math.pi - theta_cm
        return math.atan(math.sin(angle) / (math.cos(angle) + tau))

    def ke_lab(self, theta_cm, ep, ex=0.0):
        return ke_lab(theta_cm, ep, self.beam_mass, self.recoil_mass, ex)

    def recoil_ke_lab(self, theta_cm, ep, ex=0.0):
        return recoil_ke_lab(theta_cm, ep, self.beam_mass, self.recoil_mass, ex)

    def rutherford_cm(self, theta_cm, ep, ex=0.0):
        """Rutherford cross section in the CM frame."""
        ecm = ep / (1.0 + self.beam_mass / self.recoil_mass)
        esym2 = ecm ** 1.5 * math.sqrt(ecm - ex)
        denom = esym2 * math.sin(theta_cm / 2.0) ** 4
        factor = 1.29596 * _MILLIBARN
        return factor * (self.beam_z * self.recoil_z) ** 2 / denom

    # Angle selection

    def add_theta_lab(self, theta):
        """Add one edge of a desired LAB angle range (edges come in pairs)."""
        self.good_lab_thetas.append(theta)

    def set_only_p(self):
        self.only_r = False
        self.only_p = True

    def set_only_r(self):
        self.only_r = True
        self.only_p = False

    def _ranges(self):
        return zip(self.good_lab_thetas[::2], self.good_lab_thetas[1::2])

    def _keep_theta_cm(self, theta_cm, ep, ex):
        proj = self.theta_lab(theta_cm, ep, ex)
        rec = self.recoil_theta_lab(theta_cm, ep, ex)
        rec_ke = self.recoil_ke_lab(theta_cm, ep, ex)
        for low, high in self._ranges():
            proj_in = low < proj < high
            rec_in = low < rec < high and rec_ke > self.recoil_threshold
            if self.only_p:
                if proj_in:
                    return True
            elif self.only_r:
                if rec_in:
                    return True
            elif proj_in or rec_in:
                return True
        return False

    def construct_rutherford_cm(self, ep, ex=0.0):
        """Build the CM angle distribution restricted to the desired LAB ranges."""
        thetas = self.good_lab_thetas
        problem = None
        if not thetas:
            problem = "Desired LAB angle ranges were not defined!"
        elif len(thetas) % 2:
            problem = "There must be an even number desired LAB scattering angles!"
        elif any(low > high for low, high in self._ranges()):
            problem = "Desired LAB angle ranges were improperly defined!"
        if problem:
            _log.warning("%s Defaulting large LAB angle range of (13,180) deg!", problem)
            self.good_lab_thetas = list(_DEFAULT_RANGE)
            self.set_only_p()

        probs = np.zeros(_N_BINS)
        step = math.pi / _N_BINS
        for i in range(_MIN_BIN, _N_BINS):
            theta_cm = step * i
            if self._keep_theta_cm(theta_cm, ep, ex):
                probs[i] = 2.0 * math.pi * math.sin(theta_cm) * self.rutherford_cm(
                    theta_cm, ep, ex
                )
        total = probs.sum()
        if not total > 0.0:
            raise ValueError("no CM scattering angle reaches the desired LAB ranges")
        self._cdf = np.concatenate(([0.0], np.cumsum(probs))) / total

    def sample_rutherford_cm(self, rng):
        """Draw a CM scattering angle; ``rng`` needs a ``random()`` method."""
        if self._cdf is None:
            raise RuntimeError("construct_rutherford_cm must be called before sampling")
        cdf = self._cdf
        r = rng.random()
        index = int(np.searchsorted(cdf, r, side="right")) - 1
        index = min(max(index, 0), _N_BINS - 1)
        low, high = cdf[index], cdf[index + 1]
        fraction = (r - low) / (high - low) if high > low else 0.0
        return (index + fraction) / _N_BINS * math.pi