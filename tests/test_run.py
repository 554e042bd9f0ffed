import io
from dataclasses import dataclass

import pytest

from clxsim.formats import read_events, read_info
from clxsim.run import GammaHit, IonHit, Run, RunAction, thread_file_name


@dataclass
class FakeGenerator:
    projectile_index: int = 2
    recoil_index: int = 1
    beam_energy: float = 280.5
    theta_cm: float = 45.25


def ion(det=1, projectile=True, recoil=False, edep=2.5):
    return IonHit(edep, (10.0, 0.0, 0.0), det=det, ring=3, sector=0,
                  projectile=projectile, recoil=recoil)


def gamma(seg=0, edep=0.5):
    return GammaHit(edep, (10.0, 0.0, 0.0), det=4, seg=seg, fep=True)


def events(buffer):
    return list(read_events(io.BytesIO(buffer.getvalue())))


def test_thread_file_name():
    assert thread_file_name("output.dat", 3) == "output-3.dat"
    assert thread_file_name("output.dat", "info-0") == "output-info-0.dat"


def test_thread_file_name_too_short():
    with pytest.raises(ValueError):
        thread_file_name("ab", 0)


def test_ion_hit_ring_and_sector():
    assert ion().is_ring()
    assert not ion().is_sector()


def test_event_round_trip():
    out = io.BytesIO()
    run = Run(out)
    assert run.record_event(7, [ion()], [gamma(), gamma(seg=2)])
    [(header, s3, sega)] = events(out)
    assert (header.event_number, header.n_s3, header.n_sega) == (7, 1, 2)
    assert s3[0].energy == pytest.approx(2.5)
    assert s3[0].x == pytest.approx(1.0)
    assert s3[0].ring == 3 and s3[0].projectile
    assert sega[0].energy == pytest.approx(500.0)
    assert sega[1].seg == 2 and sega[1].fep


def test_empty_event_not_written():
    out = io.BytesIO()
    assert not Run(out).record_event(1, [], [])
    assert out.getvalue() == b""


def test_only_coincidences():
    out = io.BytesIO()
    run = Run(out)
    run.only_write_coincidences = True
    assert not run.record_event(1, [ion()], [])
    assert not run.record_event(2, [], [gamma()])
    assert run.record_event(3, [ion()], [gamma()])
    assert [h.event_number for h, _, _ in events(out)] == [3]


def test_gamma_trigger_counts_core_hits_only():
    out = io.BytesIO()
    run = Run(out)
    run.gamma_trigger = 2
    assert not run.record_event(1, [], [gamma(), gamma(seg=1), gamma(seg=5)])
    assert run.record_event(2, [], [gamma(), gamma()])
    assert [h.event_number for h, _, _ in events(out)] == [2]


def test_ion_hits_are_limited():
    out = io.BytesIO()
    run = Run(out)
    run.record_event(1, [ion() for _ in range(8)], [])
    [(header, s3, _)] = events(out)
    assert header.n_s3 == Run.MAX_ION_HITS
    assert len(s3) == Run.MAX_ION_HITS


def test_gamma_hits_are_limited():
    out = io.BytesIO()
    Run(out).record_event(1, [], [gamma() for _ in range(120)])
    [(header, _, sega)] = events(out)
    assert header.n_sega == Run.MAX_GAMMA_HITS == len(sega)


def test_diagnostics_written_for_every_event():
    out, diag = io.BytesIO(), io.BytesIO()
    gen = FakeGenerator()
    run = Run(out, diag, gen)
    run.record_event(4, [ion(det=0), ion(det=1, projectile=False, recoil=True)], [])
    run.record_event(5, [], [])
    infos = list(read_info(io.BytesIO(diag.getvalue())))
    assert [i.event_number for i in infos] == [4, 5]
    first = infos[0]
    assert first.projectile_index == gen.projectile_index
    assert first.recoil_index == gen.recoil_index
    assert first.beam_energy == gen.beam_energy
    assert first.theta_cm == gen.theta_cm
    assert (first.projectile_ds, first.projectile_us, first.recoil) == (False, True, True)
    assert (infos[1].projectile_ds, infos[1].projectile_us, infos[1].recoil) == (
        False, False, False)
    assert run.events_recorded == 2


def test_diagnostics_without_generator():
    run = Run(io.BytesIO(), io.BytesIO())
    with pytest.raises(RuntimeError):
        run.record_event(1, [], [])


def test_run_action_defaults():
    action = RunAction()
    assert action.output_file_name == "output.dat"
    assert action.diagnostics_file_name == ""
    assert not action.write_diagnostics


def test_run_action_merges_threads(tmp_path):
    action = RunAction()
    action.output_file_name = str(tmp_path / "out.dat")
    action.write_diagnostics = True
    action.only_write_coincidences = True
    gen = FakeGenerator()
    for thread in range(2):
        with action.begin_worker_run(thread, gen) as run:
            assert run.only_write_coincidences
            run.record_event(thread, [ion()], [gamma()])
    assert (tmp_path / "out-info-1.dat").exists()

    merged = action.end_run(2)
    assert merged[0] == tmp_path / "out.dat"
    assert merged[1] == tmp_path / "out-info.dat"
    assert action.diagnostics_file_name == str(tmp_path / "out-info.dat")
    with open(merged[0], "rb") as stream:
        assert [h.event_number for h, _, _ in read_events(stream)] == [0, 1]
    with open(merged[1], "rb") as stream:
        assert [i.event_number for i in read_info(stream)] == [0, 1]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["out-info.dat", "out.dat"]


def test_run_action_named_diagnostics(tmp_path):
    action = RunAction()
    action.output_file_name = str(tmp_path / "out.dat")
    action.diagnostics_file_name = str(tmp_path / "diag.dat")
    action.write_diagnostics = True
    action.gamma_trigger = 3
    run = action.begin_worker_run(0, FakeGenerator())
    assert run.gamma_trigger == 3
    run.close()
    assert (tmp_path / "diag-0.dat").exists()
    merged = action.end_run(1)
    assert merged[1] == tmp_path / "diag.dat"
    assert not (tmp_path / "diag-0.dat").exists()


def test_run_action_without_diagnostics(tmp_path):
    action = RunAction()
    action.output_file_name = str(tmp_path / "out.dat")
    action.begin_worker_run(0).close()
    merged = action.end_run(3)
    assert merged == [tmp_path / "out.dat"]
    assert merged[0].read_bytes() == b""