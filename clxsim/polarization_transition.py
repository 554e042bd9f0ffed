"""Gamma-ray emission from aligned nuclear states.

Samples the emission direction of a gamma ray from the statistical tensor
of the decaying state and works out the statistical tensor of the state
it feeds.
"""

from __future__ import annotations

import cmath
import logging
import math
from typing import Sequence

import numpy as np
from numpy.polynomial import legendre as _legendre
from numpy.polynomial import polynomial as _poly
from scipy.optimize import brentq
from scipy.special import lpmv

from clxsim.polarization import wigner_3j, wigner_6j, wigner_9j

_log = logging.getLogger(__name__)

_EPS = 1.0e-15
_TWO_PI = 2.0 * math.pi
_PHI_THROWS = 100
_LEGENDRE_ORDERS = 30
_MAX_RANKS = 7

Polar = list[list[complex]]


def _unpolarized() -> Polar:
    return [[complex(1.0)]]


def _ln_factorial(n: int) -> float:
    return math.lgamma(n + 1)


def _assoc_legendre(l: int, m: int, x: float) -> float:
    """P_l^m(x) with the Condon-Shortley phase."""
    if l < 0 or m < -l or m > l:
        return 0.0
    if m < 0:
        sign = -1.0 if m % 2 else 1.0
        return sign * _assoc_legendre(l, -m, x) * math.exp(
            _ln_factorial(l + m) - _ln_factorial(l - m)
        )
    return float(lpmv(m, l, x))


def _sample_polynomial(coeffs: np.ndarray, rng) -> float:
    """Draw x in [-1, 1] from the density proportional to the power series ``coeffs``."""
    integral = _poly.polyint(coeffs, lbnd=-1.0)
    total = float(_poly.polyval(1.0, integral))
    if not total > 0.0:
        raise ValueError("angular distribution does not integrate to a positive value")
    target = rng.random() * total
    if target <= 0.0:
        return -1.0
    return float(brentq(lambda x: _poly.polyval(x, integral) - target, -1.0, 1.0))


def _format_spin(two_j: int) -> str:
    return f"{two_j}/2" if two_j % 2 else str(two_j // 2)


class PolarizationTransition:
    """Angular distribution and polarization transfer of a gamma transition."""

    def __init__(self, verbose=1):
        self.verbose = verbose
        self.two_j1 = 0
        self.two_j2 = 0
        self.lbar = 1
        self.l = 0
        self.delta = 0.0
        self._legendre = [
            _legendre.leg2poly([0.0] * k + [1.0]) for k in range(_LEGENDRE_ORDERS)
        ]

    # Coefficients

    def f_coefficient(self, k, l, lprime, two_j2, two_j1):
        """The F_k(L L' J2 J1) coefficient."""
        coeff = wigner_3j(2 * l, 2 * lprime, 2 * k, 2, -2, 0)
        if coeff == 0:
            return 0.0
        coeff *= wigner_6j(2 * l, 2 * lprime, 2 * k, two_j1, two_j1, two_j2)
        if coeff == 0:
            return 0.0
        if ((two_j1 + two_j2) // 2 - 1) % 2:
            coeff = -coeff
        return coeff * math.sqrt(float((2 * k + 1) * (two_j1 + 1) * (2 * l + 1) * (2 * lprime + 1)))

    def f3_coefficient(self, k, k2, k1, l, lprime, two_j2, two_j1):
        """The generalised F coefficient coupling ranks k1 and k2 through k."""
        coeff = wigner_3j(2 * l, 2 * lprime, 2 * k, 2, -2, 0)
        if coeff == 0:
            return 0.0
        coeff *= wigner_9j(
            two_j2, 2 * l, two_j1,
            two_j2, 2 * lprime, two_j1,
            2 * k2, 2 * k, 2 * k1,
        )
        if coeff == 0:
            return 0.0
        if (lprime + k2 + k1 + 1) % 2:
            coeff = -coeff
        return coeff * math.sqrt(
            float((two_j1 + 1) * (two_j2 + 1) * (2 * l + 1))
            * float((2 * lprime + 1) * (2 * k + 1) * (2 * k1 + 1) * (2 * k2 + 1))
        )

    def gamma_trans_f_coefficient(self, k):
        """F_k of the current transition, mixing both multipoles with ``delta``."""
        value = self.f_coefficient(k, self.lbar, self.lbar, self.two_j2, self.two_j1)
        if self.delta == 0:
            return value
        value += 2.0 * self.delta * self.f_coefficient(
            k, self.lbar, self.l, self.two_j2, self.two_j1
        )
        value += self.delta * self.delta * self.f_coefficient(
            k, self.l, self.l, self.two_j2, self.two_j1
        )
        return value

    def gamma_trans_f3_coefficient(self, k, k2, k1):
        """Generalised F coefficient of the current transition."""
        value = self.f3_coefficient(k, k2, k1, self.lbar, self.lbar, self.two_j2, self.two_j1)
        if self.delta == 0:
            return value
        value += 2.0 * self.delta * self.f3_coefficient(
            k, k2, k1, self.lbar, self.l, self.two_j2, self.two_j1
        )
        value += self.delta * self.delta * self.f3_coefficient(
            k, k2, k1, self.l, self.l, self.two_j2, self.two_j1
        )
        return value

    # Direction sampling

    def _gamma_cos_theta(self, pol: Sequence[Sequence[complex]], rng) -> float:
        length = len(pol)
        if length <= 1:
            return rng.random() * 2.0 - 1.0

        coeffs = np.zeros(length)
        for k in range(0, length, 2):
            row = pol[k]
            if not row:
                _log.warning("size of pol[%d] = 0, returning isotropic", k)
                return rng.random() * 2.0 - 1.0
            first = complex(row[0])
            if self.verbose > 1 and abs(first.imag) > _EPS:
                _log.warning(
                    "polarization[%d][0] has imag component: = %g + %g*i",
                    k, first.real, first.imag,
                )
            a_k = math.sqrt(2.0 * k + 1.0) * self.gamma_trans_f_coefficient(k) * first.real
            series = self._legendre[k]
            coeffs[: len(series)] += a_k * series
        if self.verbose > 1 and coeffs[-1] == 0:
            _log.warning("got zero highest-order coefficient.\n%s", self.dump_transition_data(pol))
        return _sample_polynomial(coeffs, rng)

    def _gamma_phi(self, cos_theta: float, pol: Sequence[Sequence[complex]], rng) -> float:
        length = len(pol)
        if all(len(row) <= 1 for row in pol):
            return rng.random() * _TWO_PI

        amp = [0.0] * length
        phase = [0.0] * length
        for kappa in range(length):
            total = 0j
            for k in range(kappa + kappa % 2, length, 2):
                row = pol[k]
                if not row:
                    if self.verbose > 1:
                        _log.warning("size of pol[%d] = 0, returning isotropic", k)
                    return rng.random() * _TWO_PI
                if kappa >= len(row) or abs(row[kappa]) < _EPS:
                    continue
                term = self.gamma_trans_f_coefficient(k)
                if term == 0:
                    continue
                term *= math.sqrt(2.0 * k + 1.0) * _assoc_legendre(k, kappa, cos_theta)
                if kappa > 0:
                    term *= 2.0 * math.exp(
                        0.5 * (_ln_factorial(k - kappa) - _ln_factorial(k + kappa))
                    )
                total += complex(row[kappa]) * term
            if self.verbose > 1 and kappa == 0 and abs(total.imag) > _EPS:
                _log.warning(
                    "Got complex amp for kappa = 0! A = %g + %g*i", total.real, total.imag
                )
            amp[kappa] = abs(total)
            phase[kappa] = cmath.phase(total)

        pdf_max = sum(amp)
        if self.verbose > 1 and pdf_max < _EPS:
            _log.warning(
                "got pdfMax = 0 for\n%s\nI suspect a non-allowed transition! "
                "Returning isotropic phi...",
                self.dump_transition_data(pol),
            )
            return rng.random() * _TWO_PI

        for _ in range(_PHI_THROWS):
            phi = rng.random() * _TWO_PI
            prob = rng.random() * pdf_max
            pdf_sum = amp[0] + sum(
                amp[kappa] * math.cos(phi * kappa + phase[kappa])
                for kappa in range(1, length)
            )
            if self.verbose > 1 and pdf_sum > pdf_max:
                _log.warning(
                    "got pdfSum (%g) > pdfMax (%g) at phi = %g", pdf_sum, pdf_max, phi
                )
            if prob <= pdf_sum:
                return phi
        if self.verbose > 1:
            _log.warning("no phi generated in %d throws! Returning isotropic phi...", _PHI_THROWS)
        return rng.random() * _TWO_PI

    # Polarization transfer

    def _final_polarization(self, pol, new_length, cos_theta, phi) -> Polar:
        new_pol: Polar = []
        for k2 in range(new_length):
            row = [0j] * (k2 + 1)
            for k1, initial in enumerate(pol):
                ll = len(initial)
                for k in range(0, k1 + k2 + 1, 2):
                    tf3 = 0.0
                    need_tf3 = True
                    for kappa2 in range(k2 + 1):
                        for kappa1 in range(1 - ll, ll):
                            if k + k2 < k1 or k + k1 < k2:
                                continue
                            if kappa1 < 0:
                                amp = complex(initial[-kappa1]).conjugate()
                                if kappa1 % 2:
                                    amp = -amp
                            else:
                                amp = complex(initial[kappa1])
                            if abs(amp) < _EPS:
                                continue
                            kappa = kappa1 - kappa2
                            amp *= wigner_3j(2 * k1, 2 * k, 2 * k2, -2 * kappa1, 2 * kappa, 2 * kappa2)
                            if abs(amp) < _EPS:
                                continue
                            if need_tf3:
                                tf3 = self.gamma_trans_f3_coefficient(k, k2, k1)
                                need_tf3 = False
                            if abs(tf3) < _EPS:
                                break
                            amp *= tf3
                            if abs(amp) < _EPS:
                                continue
                            amp *= (-1.0 if (kappa1 + k1) % 2 else 1.0) * math.sqrt(
                                (2.0 * k + 1.0) * (2.0 * k1 + 1.0) / (2.0 * k2 + 1.0)
                            )
                            amp *= _assoc_legendre(k, kappa, cos_theta)
                            if kappa != 0:
                                amp *= math.exp(
                                    0.5 * (_ln_factorial(k - kappa) - _ln_factorial(k + kappa))
                                )
                                amp *= cmath.rect(1.0, phi * kappa)
                            row[kappa2] += amp
                        if not need_tf3 and abs(tf3) < _EPS:
                            break
            new_pol.append(row)
        return new_pol

    def sample_gamma_transition(self, polarization, two_j1, two_j2, l0, lp, mp_ratio, rng):
        """Emit a gamma ray from a state with the given statistical tensor.

        Returns ``(cos_theta, phi, final_polarization)``; ``rng`` needs a
        ``random()`` method.
        """
        self.two_j1 = two_j1
        self.two_j2 = two_j2
        self.lbar = l0
        self.l = lp
        self.delta = mp_ratio
        if self.verbose > 2:
            _log.debug(
                "2J1= %d 2J2= %d Lbar= %d delta= %g Lp= %d",
                two_j1, two_j2, l0, mp_ratio, lp,
            )

        pol = [list(row) for row in polarization]
        if two_j1 == 0:
            cos_theta = 2.0 * rng.random() - 1.0
            phi = _TWO_PI * rng.random()
        else:
            cos_theta = self._gamma_cos_theta(pol, rng)
            phi = self._gamma_phi(cos_theta, pol, rng)
        if self.verbose > 2:
            _log.debug("cosTheta= %g phi= %g", cos_theta, phi)

        if two_j2 == 0:
            return cos_theta, phi, _unpolarized()

        new_length = min(two_j2 + 1, _MAX_RANKS)
        new_pol = self._final_polarization(pol, new_length, cos_theta, phi)

        p00 = new_pol[0][0]
        if p00 == 0:
            if self.verbose > 2:
                _log.warning(
                    "P[0][0] is zero!\n%s\nUnpolarizing...", self.dump_transition_data(new_pol)
                )
            return cos_theta, phi, _unpolarized()
        if self.verbose > 2 and abs(p00.imag) > _EPS:
            _log.warning("P[0][0] has a non-zero imaginary part! Unpolarizing...")
            return cos_theta, phi, _unpolarized()
        if self.verbose > 2:
            _log.debug("Before normalization: %s", self.dump_transition_data(new_pol))

        last_non_empty = 0
        for k2, row in enumerate(new_pol):
            last_non_zero = -1
            for kappa2, value in enumerate(row):
                if k2 == 0 and kappa2 == 0:
                    last_non_zero = 0
                    continue
                if abs(value) > 0.0:
                    last_non_zero = kappa2
                    row[kappa2] = value / p00
            del row[last_non_zero + 1:]
            if row:
                last_non_empty = k2
        del new_pol[last_non_empty + 1:]
        new_pol[0][0] = complex(1.0)
        return cos_theta, phi, new_pol

    def dump_transition_data(self, pol):
        """Describe the current transition and a statistical tensor as text."""
        parts = [f"PolarizationTransition: {_format_spin(self.two_j1)} --({self.lbar}"]
        if self.delta != 0:
            parts.append(f" + {self.delta:g}*{self.l}")
        parts.append(f")--> {_format_spin(self.two_j2)}, P = [ {{ ")
        rows = (
            ", ".join(f"{complex(v).real:g} + {complex(v).imag:g}*i" for v in row)
            for row in pol
        )
        parts.append(" }, { ".join(rows))
        parts.append(" } ]")
        return "".join(parts)