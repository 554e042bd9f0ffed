# clxsim

Building blocks for simulating Coulomb-excitation experiments in which a beam
scatters off a target, scattered ions are detected in a pair of annular S3
silicon detectors and de-excitation gamma rays are detected in the SeGA
germanium array.

Internal units: energies in MeV, lengths in mm, angles in radians, times in ns.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `clxsim.modes` – the `Mode` enum (`SCATTERING`, `SOURCE`, `FULL`) with
  `Mode.parse("Scattering")`.
- `clxsim.reaction` – two-body Rutherford kinematics. `Reaction` gives
  `theta_lab`, `recoil_theta_lab`, `ke_lab`, `recoil_ke_lab` and
  `rutherford_cm`; LAB angle ranges are added in pairs with `add_theta_lab`,
  `construct_rutherford_cm` builds the CM angle distribution restricted to
  them (falling back to 13–180 deg for the projectile when the ranges are
  missing or malformed) and `sample_rutherford_cm(rng)` draws from it. The
  module-level functions `ke_lab`, `recoil_ke_lab`, `beta_lab` and
  `recoil_beta_lab` take the masses explicitly.
- `clxsim.polarization` – Wigner `wigner_3j`, `wigner_6j`, `wigner_9j`
  (arguments doubled), `max_k`, `num_comps`, `atomic_spin`,
  `charge_state_distribution`, `format_polarization`, and the `Polarization`
  class: it reads a statistical-tensor file (`file_name`), applies
  deorientation coefficients (`gk_coefficients`) when `calc_gk` is set, and
  interpolates the tensors in energy and angle with `get_polarization`.
- `clxsim.polarization_transition` – `PolarizationTransition`: F and
  generalised F coefficients, and `sample_gamma_transition`, which returns
  `(cos_theta, phi, final_polarization)` for a gamma ray emitted by a state
  with a given statistical tensor.
- `clxsim.generator` – `PrimaryGenerator` producing `Vertex` objects in
  scattering mode (projectile and recoil, optionally only events that reach an
  S3 detector) or source mode (one isotropic gamma ray of `source_energy`).
- `clxsim.tracking` – `TrackingAction` maps each emitted gamma ray to the
  ids of the `Track`s it caused.
- `clxsim.run` – `IonHit`, `GammaHit`, `Run` (writes one event's records to
  the output and diagnostics files, honouring the gamma multiplicity trigger
  and the coincidence-only option), `RunAction` (opens per-thread files and
  merges them with `end_run`) and `thread_file_name`.
- `clxsim.formats` – the binary records `Header`, `S3Data`, `SeGAData` and
  `Info` with `pack`/`unpack`, and the readers `read_events` and `read_info`.
- `clxsim.s3`, `clxsim.sega` – copy numbering and placement of the S3 cells
  (`S3.segments`) and SeGA segments (`SeGA.placements`).
- `clxsim.macros` – `worker_commands` and `read_worker_commands` select the
  macro lines under `/Mode`, `/Source`, `/Reaction`, `/Beam`, `/Excitation`
  and `/DeorientationEffect`.
- `clxsim.reaction_commands`, `clxsim.polarization_commands`,
  `clxsim.run_commands`, `clxsim.generator_commands` – messenger classes whose
  `apply(command, value)` handles text commands such as
  `/Reaction/ProjectileZ 48` or `/Beam/Energy 300 MeV` and returns the message
  describing the change. `parse_quantity("300 MeV")` converts a value with a
  unit into internal units.

## Example

```python
import math
import random

from clxsim.generator import PrimaryGenerator
from clxsim.reaction import Reaction

reac = Reaction(48, 106, 98626.0, 82, 208, 193688.0)
print(reac.theta_lab(math.radians(90.0), 300.0, 0.0))
print(reac.ke_lab(math.radians(90.0), 300.0, 0.0))

gen = PrimaryGenerator(reac, random.Random(1))
gen.set_mode("Scattering")
gen.update(us_offset=30.0, ds_offset=30.0)
for vertex in gen.generate():
    print(vertex.particle, vertex.energy, vertex.direction)
```

Reading an output file:

```python
from clxsim.formats import read_events

with open("output.dat", "rb") as stream:
    for header, ions, gammas in read_events(stream):
        print(header.event_number, len(ions), len(gammas))
```

## What the package does not do

- It does not transport particles through matter or detectors. Hits are
  passed to `Run.record_event` by the caller, and the beam's stopping power in
  the target is passed to `PrimaryGenerator.update` as `dedx`.
- It has no level schemes or excitation probabilities, so `PrimaryGenerator`
  cannot generate events in full mode (`Mode.FULL` raises `ValueError`), and
  source mode only emits a single gamma ray of a fixed energy.
- There is no command-line program; configuration is done in Python or
  through the messengers' `apply` methods.