"""Text commands that configure a PrimaryGenerator."""

from __future__ import annotations

from typing import Callable

from clxsim.generator import PrimaryGenerator
from clxsim.reaction_commands import parse_quantity


def _parse_vector(text: str) -> tuple[float, float, float]:
    fields = text.split()
    if len(fields) != 4:
        raise ValueError(f"expected three numbers and a unit, got {text!r}")
    scale = parse_quantity(f"1 {fields[3]}")
    try:
        return tuple(float(field) * scale for field in fields[:3])
    except ValueError:
        raise ValueError(f"malformed vector {text!r}") from None


class PrimaryGeneratorMessenger:
    """Applies the beam, reaction, source and mode commands to a PrimaryGenerator."""

    def __init__(self, generator: PrimaryGenerator):
        self.generator = generator
        quantities = {
            "/Beam/PositionX": ("beam_x", "Setting X position of incoming beam to {}"),
            "/Beam/PositionY": ("beam_y", "Setting Y position of incoming beam to {}"),
            "/Beam/AngleX": ("beam_ax", "Setting X angle of incoming beam to {}"),
            "/Beam/AngleY": ("beam_ay", "Setting Y angle of incoming beam to {}"),
            "/Beam/Energy": ("beam_en", "Setting kinetic energy of incoming beam to {}"),
            "/Beam/SigmaX": ("sigma_x", "Setting sigma of X position distribution to {}"),
            "/Beam/SigmaY": ("sigma_y", "Setting sigma of Y position distribution to {}"),
            "/Beam/SigmaAX": ("sigma_ax", "Setting sigma of X angle distribution to {}"),
            "/Beam/SigmaAY": ("sigma_ay", "Setting sigma of Y angle distribution to {}"),
            "/Beam/SigmaEn": ("sigma_en", "Setting sigma of energy distribution to {}"),
            "/Reaction/DeltaE": ("delta_e", "Setting DeltaE = -Q of scattering reaction to {}"),
            "/Source/Energy": ("source_energy", "Setting source gamma-ray energy to {}"),
        }
        self._commands: dict[str, Callable[[str], str]] = {
            name: self._quantity_setter(attribute, message)
            for name, (attribute, message) in quantities.items()
        }
        self._commands.update({
            "/Reaction/Optimize": self._optimize,
            "/Reaction/OnlyProjectiles": self._only_projectiles,
            "/Reaction/OnlyRecoils": self._only_recoils,
            "/Source/Position": self._source_position,
            "/Mode": self._mode,
            "/UpdateGenerator": self._update,
        })

    @property
    def commands(self) -> list[str]:
        return list(self._commands)

    def _quantity_setter(self, attribute: str, message: str) -> Callable[[str], str]:
        def apply(value: str) -> str:
            setattr(self.generator, attribute, parse_quantity(value))
            return message.format(value)
        return apply

    def _optimize(self, value: str) -> str:
        self.generator.optimize = True
        return "Ensuring a particle will always enter S3!"

    def _only_projectiles(self, value: str) -> str:
        self.generator.only_projectile()
        return ("Only considering the projectile nucleus when determining the desired "
                "scattering angle ranges!")

    def _only_recoils(self, value: str) -> str:
        self.generator.only_recoil()
        return ("Only considering the recoil nucleus when determining the desired "
                "scattering angle ranges!")

    def _source_position(self, value: str) -> str:
        self.generator.source_position = _parse_vector(value)
        return f"Setting gamma source position to {value}"

    def _mode(self, value: str) -> str:
        self.generator.set_mode(value)
        return f"Simulation mode: {value}"

    def _update(self, value: str) -> str:
        self.generator.update()
        return ""

    def apply(self, command: str, value: str = "") -> str:
        """Apply one command and return the message describing it (may be empty)."""
        try:
            action = self._commands[command]
        except KeyError:
            raise ValueError(f"unknown generator command {command!r}") from None
        return action(value)