"""Recording of detector hits to the event and diagnostics files.

Hit energies are in MeV and positions in mm. They are written to the
files in the units of the record format: MeV for S3 hits, keV for SeGA
hits, cm for positions.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Protocol

from clxsim.formats import Header, Info, S3Data, SeGAData

_log = logging.getLogger(__name__)

_MM_PER_CM = 10.0
_KEV_PER_MEV = 1000.0


@dataclass
class IonHit:
    """Energy deposited by an ion in one S3 ring or sector."""

    edep: float
    pos: tuple[float, float, float]
    det: int = 0
    ring: int = 0
    sector: int = 0
    projectile: bool = False
    recoil: bool = False

    def is_ring(self) -> bool:
        return bool(self.ring)

    def is_sector(self) -> bool:
        return bool(self.sector)


@dataclass
class GammaHit:
    """Energy deposited in one SeGA segment (segment 0 is the whole crystal)."""

    edep: float
    pos: tuple[float, float, float]
    det: int = 0
    seg: int = 0
    fep: bool = False
    projectile_fep: bool = False


class _EventSource(Protocol):
    """What the diagnostics record needs from the primary generator."""

    projectile_index: int
    recoil_index: int
    beam_energy: float  # MeV
    theta_cm: float  # degrees


def thread_file_name(name, suffix) -> str:
    """Insert ``-<suffix>`` before the four-character extension of ``name``."""
    name = os.fspath(name)
    if len(name) < 4:
        raise ValueError(f"file name {name!r} needs a three-letter extension")
    return f"{name[:-4]}-{suffix}{name[-4:]}"


class Run:
    """Writes the hits of each event of one worker to its files."""

    MAX_ION_HITS = 5
    MAX_GAMMA_HITS = 100

    def __init__(self, output: BinaryIO, diagnostics: BinaryIO | None = None,
                 generator: _EventSource | None = None):
        self.output = output
        self.diagnostics = diagnostics
        self.generator = generator
        self.gamma_trigger = 0
        self.only_write_coincidences = False
        self.events_recorded = 0

    @property
    def write_diagnostics(self) -> bool:
        return self.diagnostics is not None

    def record_event(self, event_id: int, ion_hits: Iterable[IonHit],
                     gamma_hits: Iterable[GammaHit]) -> bool:
        """Record one event; returns True when it was written to the output."""
        s3_records: list[S3Data] = []
        proj_ds = proj_us = recoil = False
        for hit in ion_hits:
            if len(s3_records) >= self.MAX_ION_HITS:
                _log.warning("Too many ion hits!")
                break
            if hit.projectile:
                if hit.det:
                    proj_ds = True
                else:
                    proj_us = True
            if hit.recoil:
                recoil = True
            x, y, z = hit.pos
            s3_records.append(S3Data(
                hit.det, hit.ring, hit.sector, hit.edep,
                x / _MM_PER_CM, y / _MM_PER_CM, z / _MM_PER_CM,
                hit.projectile, hit.recoil,
            ))

        sega_records: list[SeGAData] = []
        multiplicity = 0
        for hit in gamma_hits:
            if len(sega_records) >= self.MAX_GAMMA_HITS:
                _log.warning("Too many gamma hits!")
                break
            if not hit.seg:
                multiplicity += 1
            x, y, z = hit.pos
            sega_records.append(SeGAData(
                hit.det, hit.seg, hit.edep * _KEV_PER_MEV,
                x / _MM_PER_CM, y / _MM_PER_CM, z / _MM_PER_CM,
                hit.fep, hit.projectile_fep,
            ))

        self.events_recorded += 1

        if self.diagnostics is not None:
            gen = self.generator
            if gen is None:
                raise RuntimeError("a primary generator is needed to write diagnostics")
            info = Info(
                event_id, gen.projectile_index, gen.recoil_index,
                gen.beam_energy, gen.theta_cm, proj_ds, proj_us, recoil,
            )
            self.diagnostics.write(info.pack())

        n_s3, n_sega = len(s3_records), len(sega_records)
        if n_s3 == 0 and n_sega == 0:
            return False
        if self.only_write_coincidences and (n_s3 == 0 or n_sega == 0):
            return False
        if multiplicity < self.gamma_trigger:
            return False

        self.output.write(Header(event_id, n_s3, n_sega).pack())
        for record in s3_records:
            self.output.write(record.pack())
        for record in sega_records:
            self.output.write(record.pack())
        return True

    def close(self) -> None:
        """Close the output and diagnostics files."""
        self.output.close()
        if self.diagnostics is not None:
            self.diagnostics.close()

    def __enter__(self) -> "Run":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _merge(target: str, sources: list[str], what: str) -> Path:
    with open(target, "wb") as out:
        for number, source in enumerate(sources, start=1):
            try:
                with open(source, "rb") as part:
                    shutil.copyfileobj(part, out)
            except FileNotFoundError:
                continue
            os.remove(source)
            _log.info("%s file %d/%d merged", what, number, len(sources))
    return Path(target)


class RunAction:
    """Opens per-thread output files and merges them at the end of a run."""

    def __init__(self):
        self.output_file_name = "output.dat"
        self.diagnostics_file_name = ""
        self.gamma_trigger = 0
        self.only_write_coincidences = False
        self.write_diagnostics = False

    def _thread_diagnostics_name(self, thread_id: int) -> str:
        if self.diagnostics_file_name:
            return thread_file_name(self.diagnostics_file_name, thread_id)
        return thread_file_name(self.output_file_name, f"info-{thread_id}")

    def begin_worker_run(self, thread_id: int, generator=None) -> Run:
        """Open the files of one worker thread and return its Run."""
        output = open(thread_file_name(self.output_file_name, thread_id), "wb")
        diagnostics = None
        if self.write_diagnostics:
            try:
                diagnostics = open(self._thread_diagnostics_name(thread_id), "wb")
            except OSError:
                output.close()
                raise
        run = Run(output, diagnostics, generator)
        run.gamma_trigger = self.gamma_trigger
        run.only_write_coincidences = self.only_write_coincidences
        return run

    def end_run(self, num_threads: int) -> list[Path]:
        """Concatenate and remove the per-thread files; return the merged files."""
        _log.info("Run Complete! Merging output files...")
        merged = [_merge(
            self.output_file_name,
            [thread_file_name(self.output_file_name, i) for i in range(num_threads)],
            "Data",
        )]
        if not self.write_diagnostics:
            return merged
        if not self.diagnostics_file_name:
            name = self.output_file_name
            self.diagnostics_file_name = f"{name[:-4]}-info{name[-4:]}"
        merged.append(_merge(
            self.diagnostics_file_name,
            [thread_file_name(self.diagnostics_file_name, i) for i in range(num_threads)],
            "Diagnostics",
        ))
        return merged