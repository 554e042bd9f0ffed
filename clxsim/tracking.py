"""Follows gamma rays emitted by the nuclei and the tracks they produce."""

from __future__ import annotations

from dataclasses import dataclass

from clxsim.modes import Mode


@dataclass(frozen=True)
class Track:
    """What the tracking action needs to know about a new track."""

    track_id: int
    parent_id: int
    particle_name: str
    particle_type: str
    kinetic_energy: float


class TrackingAction:
    """Maps each emitted gamma ray to the ids of the tracks it caused."""

    def __init__(self):
        self.mode = Mode.SOURCE
        self.simple_source = False
        self.projectile_name = ""
        self.ion_ids: list[int] = []
        self.projectile_ids: list[int] = []
        self.projectile_gammas: list[int] = []
        self.id_map: dict[int, list[int]] = {}
        self.energy_map: dict[int, float] = {}

    def _start_gamma(self, track: Track) -> None:
        self.energy_map[track.track_id] = track.kinetic_energy
        self.id_map.setdefault(track.track_id, []).append(track.track_id)

    def _attach(self, track: Track) -> None:
        parent = track.parent_id
        if parent in self.id_map:
            self.id_map[parent].append(track.track_id)
            return
        for gamma in sorted(self.id_map):
            ids = self.id_map[gamma]
            if parent in ids:
                ids.append(track.track_id)
                return

    def record(self, track: Track) -> None:
        """Account for a track as it starts."""
        if self.mode is Mode.SCATTERING:
            return

        if self.mode is Mode.SOURCE and self.simple_source:
            if not track.parent_id:
                self._start_gamma(track)
            else:
                if not self.id_map:
                    raise LookupError("secondary track seen before any primary gamma")
                self.id_map[min(self.id_map)].append(track.track_id)
            return

        if track.particle_type == "nucleus":
            self.ion_ids.append(track.track_id)
            if self.mode is Mode.FULL and self.projectile_name in track.particle_name:
                self.projectile_ids.append(track.track_id)
            return

        if track.parent_id in self.ion_ids and track.particle_name == "gamma":
            self._start_gamma(track)
            if self.mode is Mode.FULL and track.parent_id in self.projectile_ids:
                self.projectile_gammas.append(track.track_id)
        else:
            self._attach(track)

    def clear(self) -> None:
        """Forget everything recorded for the current event."""
        self.ion_ids.clear()
        self.projectile_ids.clear()
        self.projectile_gammas.clear()
        self.id_map.clear()
        self.energy_map.clear()