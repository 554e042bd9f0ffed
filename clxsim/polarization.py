"""Statistical tensors of aligned nuclear states and their deorientation.

Energies are in MeV, angles in radians, lifetimes in ns (converted to ps
for the deorientation model, whose parameters are given in ps).
"""

from __future__ import annotations

import cmath
import logging
import math
from fractions import Fraction
from pathlib import Path
from typing import NamedTuple, Sequence

import numpy as np
from scipy.interpolate import CubicSpline

from clxsim.reaction import beta_lab, recoil_beta_lab

_log = logging.getLogger(__name__)

_NS_TO_PS = 1000.0
_MAX_WARNINGS = 5

Polar = list[list[complex]]


# Angular-momentum coupling coefficients (all arguments are doubled).

def _fac(n: int) -> int:
    return math.factorial(n)


def _triangle(two_a: int, two_b: int, two_c: int) -> bool:
    if min(two_a, two_b, two_c) < 0 or (two_a + two_b + two_c) % 2:
        return False
    return abs(two_a - two_b) <= two_c <= two_a + two_b


def _delta(two_a: int, two_b: int, two_c: int) -> Fraction:
    return Fraction(
        _fac((two_a + two_b - two_c) // 2)
        * _fac((two_a - two_b + two_c) // 2)
        * _fac((-two_a + two_b + two_c) // 2),
        _fac((two_a + two_b + two_c) // 2 + 1),
    )


def _signed_sqrt(norm: Fraction, total: Fraction, sign: int = 1) -> float:
    if total == 0:
        return 0.0
    return math.copysign(math.sqrt(norm * total * total), sign * total)


def wigner_3j(two_j1, two_j2, two_j3, two_m1, two_m2, two_m3):
    """The 3j symbol (j1 j2 j3; m1 m2 m3), every argument given as twice its value."""
    if two_m1 + two_m2 + two_m3 != 0 or not _triangle(two_j1, two_j2, two_j3):
        return 0.0
    for two_j, two_m in ((two_j1, two_m1), (two_j2, two_m2), (two_j3, two_m3)):
        if abs(two_m) > two_j or (two_j + two_m) % 2:
            return 0.0
    a = (two_j3 - two_j2 + two_m1) // 2
    b = (two_j3 - two_j1 - two_m2) // 2
    c = (two_j1 + two_j2 - two_j3) // 2
    d = (two_j1 - two_m1) // 2
    e = (two_j2 + two_m2) // 2
    total = Fraction(0)
    for t in range(max(0, -a, -b), min(c, d, e) + 1):
        denom = _fac(t) * _fac(a + t) * _fac(b + t) * _fac(c - t) * _fac(d - t) * _fac(e - t)
        total += Fraction(-1 if t % 2 else 1, denom)
    norm = _delta(two_j1, two_j2, two_j3)
    for two_j, two_m in ((two_j1, two_m1), (two_j2, two_m2), (two_j3, two_m3)):
        norm *= _fac((two_j + two_m) // 2) * _fac((two_j - two_m) // 2)
    sign = -1 if ((two_j1 - two_j2 - two_m3) // 2) % 2 else 1
    return _signed_sqrt(norm, total, sign)


def wigner_6j(two_j1, two_j2, two_j3, two_j4, two_j5, two_j6):
    """The 6j symbol {j1 j2 j3; j4 j5 j6}, every argument given as twice its value."""
    triads = (
        (two_j1, two_j2, two_j3),
        (two_j1, two_j5, two_j6),
        (two_j4, two_j2, two_j6),
        (two_j4, two_j5, two_j3),
    )
    if not all(_triangle(*triad) for triad in triads):
        return 0.0
    sums = [sum(triad) // 2 for triad in triads]
    bounds = [
        (two_j1 + two_j2 + two_j4 + two_j5) // 2,
        (two_j1 + two_j3 + two_j4 + two_j6) // 2,
        (two_j2 + two_j3 + two_j5 + two_j6) // 2,
    ]
    total = Fraction(0)
    for t in range(max(sums), min(bounds) + 1):
        denom = math.prod(_fac(t - s) for s in sums) * math.prod(_fac(q - t) for q in bounds)
        total += Fraction((-1 if t % 2 else 1) * _fac(t + 1), denom)
    norm = math.prod((_delta(*triad) for triad in triads), start=Fraction(1))
    return _signed_sqrt(norm, total)


def wigner_9j(two_j1, two_j2, two_j3, two_j4, two_j5, two_j6, two_j7, two_j8, two_j9):
    """The 9j symbol {j1 j2 j3; j4 j5 j6; j7 j8 j9}, arguments given doubled."""
    low = max(abs(two_j1 - two_j9), abs(two_j4 - two_j8), abs(two_j2 - two_j6))
    high = min(two_j1 + two_j9, two_j4 + two_j8, two_j2 + two_j6)
    total = 0.0
    for two_x in range(low, high + 1):
        term = (
            wigner_6j(two_j1, two_j4, two_j7, two_j8, two_j9, two_x)
            * wigner_6j(two_j2, two_j5, two_j8, two_j4, two_x, two_j6)
            * wigner_6j(two_j3, two_j6, two_j9, two_x, two_j1, two_j2)
        )
        if term:
            total += (-1 if two_x % 2 else 1) * (two_x + 1) * term
    return total


# Tensor bookkeeping

def max_k(spin):
    """Highest tensor rank kept for a state of the given spin (at most 6)."""
    two_j = int(2.0 * spin + 0.01)
    return min(two_j, 6)


def num_comps(spin):
    """Number of stored components (even k, 0 <= kappa <= k) for a spin."""
    return sum(k + 1 for k in range(0, max_k(spin) + 1, 2))


_ODD_SPINS = {
    0.5: {1, 2, 3, 6, 7, 10, 15, 16, 19, 24, 25, 28, 31, 35, 37, 40, 41, 44},
    1.5: {4, 5, 8, 9, 11, 17, 18, 20, 26, 27, 36, 42, 43, 45},
    2.5: {12, 14, 21, 23, 32, 39},
    4.5: {13, 22, 38},
    3.5: {29, 30, 48},
    7.5: {33},
    6.5: {34},
    5.5: {46, 47},
}

_EVEN_SPINS = {
    2.0: {4, 8, 17, 26, 28, 30, 32, 42, 45, 48},
    1.0: {10, 36},
    3.0: {12, 21, 37},
    4.0: {13, 22, 29, 31, 34, 38, 47},
    8.0: {33},
    6.0: {46},
}


def atomic_spin(n_electrons):
    """Ground-state atomic spin of an ion carrying ``n_electrons`` electrons."""
    if n_electrons <= 0 or n_electrons > 96:
        return 0.0
    mi = n_electrons // 2 + 1
    if n_electrons % 2:
        for spin, members in _ODD_SPINS.items():
            if mi in members:
                return spin
    mi -= 1
    for spin, members in _EVEN_SPINS.items():
        if mi in members:
            return spin
    return 0.0


class ChargeStates(NamedTuple):
    """Gaussian charge-state distribution of an ion leaving the target."""

    low: int
    high: int
    centre: float
    width: float
    norm: float


def charge_state_distribution(z, beta):
    """Range, centre, width and normalisation of the equilibrium charge states."""
    if beta <= 0.0:
        raise ValueError("beta must be positive")
    h = 1.0 / (1.0 + (z ** 0.45 * 0.012008 / beta) ** (5.0 / 3.0))
    centre = z * h ** 0.6
    width = math.sqrt(centre * (1.0 - h)) / 2.0
    high = min(int(centre + 3.0 * width + 0.5), z)
    low = max(int(centre - 3.0 * width - 0.5), 1)
    norm = sum(math.exp(-(((centre - q) / width) ** 2) / 2.0) for q in range(low, high + 1))
    return ChargeStates(low, high, centre, width, norm)


def _six_j_sums(spin: float, atomic: float) -> list[float]:
    smaller = min(spin, atomic)
    ncoup = int(2.0 * smaller + 0.5) + 1
    start = abs(spin - atomic)
    two_spin = int(2.0 * spin + 0.0001)
    two_atomic = int(2.0 * atomic + 0.0001)
    sums = [0.0, 0.0, 0.0]
    for mi in range(ncoup):
        f = start + mi
        two_f = int(2.0 * f + 0.0001)
        for k in range(3):
            two_rank = int(2.0 * (2.0 * k + 2.0) + 0.0001)
            symbol = wigner_6j(two_f, two_f, two_rank, two_spin, two_spin, two_atomic)
            sums[k] += ((2.0 * f + 1.0) * symbol) ** 2 / (2.0 * atomic + 1.0)
    return sums


def format_polarization(polar):
    """Render a polarization tensor as text, one rank per line."""
    parts = [" P = [ {"]
    for k, row in enumerate(polar):
        if k > 0:
            parts.append("       {")
        parts.append("}  {".join(f"{v.real:g} + {v.imag:g}*i" for v in row))
        if k + 1 < len(polar):
            parts.append("}\n")
    parts.append("} ]")
    return "".join(parts)


class Polarization:
    """Statistical tensors of the excited states of one nucleus."""

    def __init__(self, projectile=True):
        self.projectile = projectile
        self.file_name = ""
        self.calc_gk = True

        # Deorientation model parameters
        self.average_j = 3.0
        self.gamma = 0.02
        self.lambda_star = 0.0345
        self.tau_c = 3.5
        self.g_factor = -1.0  # negative means Z/A, assigned when tensors are built
        self.field_coef = 6.0e-6
        self.field_exp = 0.6

        self.spins: list[float] = []
        self.energies: list[float] = []
        self.thetas: list[float] = []
        self._values: np.ndarray | None = None
        self._energy_spline: CubicSpline | None = None
        self._warnings: dict[str, int] = {}

    @property
    def _nucleus(self) -> str:
        return "projectile" if self.projectile else "recoil"

    def _offset(self, index: int, k: int, kappa: int) -> int:
        offset = sum(num_comps(spin) for spin in self.spins[: max(index - 1, 0)])
        offset += sum(i + 1 for i in range(0, k, 2))
        return offset + kappa

    # Deorientation

    def gk_coefficients(self, z, beta, spin, time):
        """Deorientation coefficients G_k (k = 0..6) for a state living ``time`` ps."""
        states = charge_state_distribution(z, beta)
        aks = [0.0] * 6
        for charge in range(states.low, states.high + 1):
            sums = _six_j_sums(spin, atomic_spin(z - charge))
            weight = math.exp(-(((states.centre - charge) / states.width) ** 2) / 2.0)
            for k in range(3):
                aks[2 * k] += sums[k] * weight / states.norm
        sums = _six_j_sums(spin, self.average_j)
        for k in range(3):
            aks[2 * k + 1] += sums[k]

        hmean = self.field_coef * z * beta ** self.field_exp
        wsp = 4789.0 * self.g_factor * hmean / self.average_j
        wsp *= self.tau_c
        wsp *= wsp * self.average_j * (self.average_j + 1.0) / 3.0

        gk = [1.0] * 7
        for k in range(3):
            k2 = 2 * k + 2
            k1 = 2 * k + 1
            w2 = wsp * k2 * (k2 + 1)
            wrt = w2 * (-1.0 / (1.0 - aks[k2 - 1]))
            xlam = (1.0 - aks[k2 - 1]) * (1.0 - math.exp(wrt)) / self.tau_c

            up = (self.gamma * time * aks[k1 - 1] + 1.0) / (time * self.gamma + 1.0)
            up = up * self.lambda_star * time + 1.0
            down = time * (xlam + self.lambda_star) + 1.0
            value = up / down

            alp = math.sqrt(
                9.0 * xlam * xlam + 8.0 * xlam * self.tau_c * (w2 - xlam * xlam)
            ) - 3.0 * xlam
            alp /= 4.0 * xlam * self.tau_c
            upc = xlam * time * (down - 2.0 * alp * alp * time * self.tau_c)
            dwc = (down + alp * time) * (down + 2.0 * alp * time)
            gk[k2] = value * (1.0 + upc / dwc)
        return gk

    # Building

    def _read_tensor_file(self) -> bool:
        try:
            text = Path(self.file_name).read_text()
        except OSError:
            _log.warning(
                "Could not open %s statistical tensor file %s! No polarization will occur!",
                self._nucleus, self.file_name,
            )
            self.spins = []
            return False

        lines = iter(text.splitlines())
        try:
            self.energies = [float(x) for x in next(lines, "").split()]
            self.thetas = [float(x) for x in next(lines, "").split()]
        except ValueError:
            raise ValueError("malformed energy or angle grid in statistical tensor file") from None
        num_e, num_t = len(self.energies), len(self.thetas)
        total = sum(num_comps(spin) for spin in self.spins)
        values = np.zeros(total * num_e * num_t)

        next(lines, None)
        index_e = index_t = 0
        for line in lines:
            if not line.strip():
                index_t += 1
                if index_t == num_t:
                    index_e += 1
                    index_t = 0
                    next(lines, None)
                continue
            fields = line.split()
            try:
                index = int(fields[0])
                float(fields[1])
                k = int(fields[2])
                kappa = int(fields[3])
                value = float(fields[4])
            except (IndexError, ValueError):
                raise ValueError(f"malformed statistical tensor line {line!r}") from None
            position = self._offset(index, k, kappa) * num_e * num_t + index_t * num_e + index_e
            if not 0 <= position < values.size:
                raise ValueError(f"statistical tensor component out of range: {line!r}")
            values[position] = value

        self._values = values.reshape(total, num_t, num_e) if num_e and num_t else values
        return True

    def _apply_gk(self, lifetimes, z, a, beam_mass, target_mass) -> None:
        if not self.calc_gk:
            _log.info(" No Gk coefficients")
            return
        _log.info(" Gk coefficients will be applied")
        if len(lifetimes) < len(self.spins):
            raise ValueError("a lifetime is needed for every excited state")
        if self.g_factor < 0.0:
            self.g_factor = z / a
        beta_of = beta_lab if self.projectile else recoil_beta_lab
        for state, (spin, lifetime) in enumerate(zip(self.spins, lifetimes), start=1):
            time = lifetime * _NS_TO_PS
            for j, energy in enumerate(self.energies):
                for t, theta in enumerate(self.thetas):
                    beta = beta_of(theta, energy, beam_mass, target_mass, 0.0)
                    gks = self.gk_coefficients(z, beta, spin, time)
                    for k in range(0, max_k(spin) + 1, 2):
                        first = self._offset(state, k, 0)
                        self._values[first:first + k + 1, t, j] *= gks[k]

    def build_statistical_tensors(self, spins, lifetimes, z, a, beam_mass, target_mass):
        """Read the tensor file, apply deorientation and prepare interpolation.

        Returns True when the nucleus ends up polarized.
        """
        if not self.file_name:
            _log.info("No %s polarization", self._nucleus)
            return False
        _log.info("Building %s statistical tensors from %s", self._nucleus, self.file_name)

        self._energy_spline = None
        self.spins = list(spins)
        if self._read_tensor_file():
            self._apply_gk(lifetimes, z, a, beam_mass, target_mass)

        if not (self.energies and self.thetas and self.spins
                and self._values is not None and self._values.size):
            _log.warning("Failed :( No polarization for the %s", self._nucleus)
            self.spins = []
            return False
        if len(self.energies) < 2 or len(self.thetas) < 2:
            raise ValueError("statistical tensors need at least two energies and two angles")

        self._energy_spline = CubicSpline(
            self.energies, self._values, axis=2, bc_type="natural"
        )
        _log.info("All %s statistical tensors successfully built!", self._nucleus)
        return True

    # Evaluation

    def _warn(self, key: str, message: str) -> None:
        count = self._warnings.get(key, 0)
        if count < _MAX_WARNINGS:
            _log.warning(message)
        self._warnings[key] = count + 1

    def _clamp(self, value: float, grid: Sequence[float], what: str, symbol: str) -> float:
        low, high = grid[0], grid[-1]
        if value < low:
            self._warn(
                f"{what}-low",
                f"You need to go to a lower {what} when making the polarization input "
                f"file ({symbol} = {value}, min = {low})",
            )
            return low
        if value > high:
            self._warn(
                f"{what}-high",
                f"You need to go to a higher {what} when making the polarization input "
                f"file ({symbol} = {value}, max = {high})",
            )
            return high
        return value

    def get_polarization(self, state, energy, theta, phi):
        """Normalised statistical tensor of ``state`` after scattering.

        Entry [k][kappa] is filled for even k; odd ranks are empty lists.
        """
        if not state or state >= len(self.spins) or self._energy_spline is None:
            return [[complex(1.0)]]

        energy = self._clamp(energy, self.energies, "energy", "E")
        theta = self._clamp(theta, self.thetas, "theta", "th")

        spin = self.spins[state - 1]
        first = self._offset(state, 0, 0)
        rows = self._energy_spline(energy)[first:first + num_comps(spin)]
        values = iter(CubicSpline(self.thetas, rows, axis=1, bc_type="natural")(theta))

        top = max_k(spin)
        polar: Polar = [[] for _ in range(top + 1)]
        for k in range(0, top + 1, 2):
            polar[k] = [cmath.exp(-1j * kappa * phi) * float(next(values))
                        for kappa in range(k + 1)]
        p00 = polar[0][0]
        return [[value / p00 for value in row] for row in polar]