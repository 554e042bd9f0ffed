"""Simulation modes of the primary generator."""

from __future__ import annotations

import enum


class Mode(enum.Enum):
    """What kind of primary particles each event starts with."""

    SCATTERING = "Scattering"
    SOURCE = "Source"
    FULL = "Full"

    @classmethod
    def parse(cls, name: str) -> "Mode":
        """Return the mode called ``name`` ("Scattering", "Source" or "Full")."""
        try:
            return cls(name.strip())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(
                f"unknown simulation mode {name!r}; expected one of {choices}"
            ) from None