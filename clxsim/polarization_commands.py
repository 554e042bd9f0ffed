"""Text commands that configure a Polarization."""

from __future__ import annotations

from typing import Callable

from clxsim.polarization import Polarization

_TRUE_WORDS = {"Y", "YES", "1", "T", "TRUE"}


def _parse_bool(text: str) -> bool:
    return text.strip().upper() in _TRUE_WORDS


def _parse_float(text: str) -> float:
    return float(text.strip())


class PolarizationMessenger:
    """Applies the statistical-tensor and deorientation commands of one nucleus."""

    def __init__(self, polarization: Polarization, projectile=True):
        self.polarization = polarization
        self.projectile = projectile
        nuc = "projectile" if projectile else "recoil"
        which = "Projectile" if projectile else "Recoil"
        excitation = f"/Excitation/{which}/"
        deorientation = f"/DeorientationEffect/{which}/"

        self._commands: dict[str, tuple[Callable[[str], object], str, str]] = {
            excitation + "StatisticalTensors": (
                str.strip, "file_name", f"Setting {nuc} statistical tensor file to {{}}"
            ),
            deorientation + "CalculateGk": (
                _parse_bool, "calc_gk", f"Setting flag for {nuc} Gk calculation to {{}}"
            ),
            deorientation + "AverageJ": (
                _parse_float, "average_j", f"Setting average atomic spin of the {nuc} to {{}}"
            ),
            deorientation + "Gamma": (
                _parse_float,
                "gamma",
                f"Setting the FWHM of the frequency distribution in the {nuc} to {{}} ps^-1",
            ),
            deorientation + "Lambda": (
                _parse_float,
                "lambda_star",
                f"Setting state fluctuation rate in the {nuc} to {{}} ps^-1",
            ),
            deorientation + "TauC": (
                _parse_float, "tau_c", f"Setting the correlation time in the {nuc} to {{}} ps"
            ),
            deorientation + "GFactor": (
                _parse_float, "g_factor", f"Setting g-factor for the {nuc} to {{}}"
            ),
            deorientation + "FieldCoefficient": (
                _parse_float,
                "field_coef",
                f"Setting hyperfine field coefficient in the {nuc} to {{}}*10^8 T",
            ),
            deorientation + "FieldExponent": (
                _parse_float,
                "field_exp",
                f"Setting hyperfine field exponent in the {nuc} to {{}}",
            ),
        }

    @property
    def commands(self) -> list[str]:
        return list(self._commands)

    def apply(self, command: str, value: str) -> str:
        """Apply one command and return the message describing it."""
        try:
            parse, attribute, message = self._commands[command]
        except KeyError:
            raise ValueError(f"unknown polarization command {command!r}") from None
        setattr(self.polarization, attribute, parse(value))
        return message.format(value)