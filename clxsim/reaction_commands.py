"""Text commands that configure a Reaction."""

from __future__ import annotations

import math
from typing import Callable

from clxsim.reaction import Reaction

_UNITS = {
    "eV": 1.0e-6,
    "keV": 1.0e-3,
    "MeV": 1.0,
    "GeV": 1.0e3,
    "nm": 1.0e-6,
    "um": 1.0e-3,
    "mm": 1.0,
    "cm": 10.0,
    "m": 1.0e3,
    "rad": 1.0,
    "mrad": 1.0e-3,
    "deg": math.pi / 180.0,
    "s": 1.0e9,
    "ms": 1.0e6,
    "us": 1.0e3,
    "ns": 1.0,
    "ps": 1.0e-3,
}


def parse_quantity(text: str) -> float:
    """Parse "<number> <unit>" into internal units (MeV, mm, rad, ns)."""
    parts = text.split()
    if len(parts) != 2:
        raise ValueError(f"expected '<value> <unit>', got {text!r}")
    number, unit = parts
    try:
        scale = _UNITS[unit]
    except KeyError:
        raise ValueError(f"unknown unit {unit!r}") from None
    return float(number) * scale


def _parse_int(text: str) -> int:
    return int(text.strip())


class ReactionMessenger:
    """Applies the /Reaction/ commands to a Reaction."""

    def __init__(self, reaction: Reaction):
        self.reaction = reaction
        self._commands: dict[str, tuple[Callable[[str], object], Callable[[object], None], str]] = {
            "/Reaction/ProjectileZ": (
                _parse_int, self._setter("beam_z"), "Setting projectile nucleus Z to {}"
            ),
            "/Reaction/ProjectileA": (
                _parse_int, self._setter("beam_a"), "Setting projectile nucleus A to {}"
            ),
            "/Reaction/RecoilZ": (
                _parse_int, self._setter("recoil_z"), "Setting recoil nucleus Z to {}"
            ),
            "/Reaction/RecoilA": (
                _parse_int, self._setter("recoil_a"), "Setting recoil nucleus A to {}"
            ),
            "/Reaction/RecoilThreshold": (
                parse_quantity,
                self._setter("recoil_threshold"),
                "Setting recoil detection threshold to {}",
            ),
            "/Reaction/AddThetaLAB": (
                parse_quantity,
                reaction.add_theta_lab,
                "Adding theta = {} to list of desired thetas!",
            ),
        }

    def _setter(self, name: str) -> Callable[[object], None]:
        def assign(value: object) -> None:
            setattr(self.reaction, name, value)

        return assign

    @property
    def commands(self) -> list[str]:
        return list(self._commands)

    def apply(self, command: str, value: str) -> str:
        """Apply one command and return the message describing it."""
        try:
            parse, action, message = self._commands[command]
        except KeyError:
            raise ValueError(f"unknown reaction command {command!r}") from None
        action(parse(value))
        return message.format(value)