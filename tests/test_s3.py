import math

import pytest

from clxsim.s3 import S3


@pytest.fixture
def s3():
    return S3()


def test_copy_number_examples(s3):
    assert s3.copy_number(0, 0, 0) == 109
    assert s3.copy_number(1, 23, 9) == 12432


def test_copy_numbers_unique(s3):
    copies = [seg.copy for seg in s3.segments(30.0, 40.0)]
    assert len(copies) == 2 * s3.n_rings * s3.n_sectors
    assert len(set(copies)) == len(copies)


def test_sector_codes_cover_one_to_thirty_two(s3):
    codes = {s3.copy_number(0, 0, sector) % 100 for sector in range(s3.n_sectors)}
    assert codes == set(range(1, s3.n_sectors + 1))


@pytest.mark.parametrize("args", [(2, 0, 0), (0, 24, 0), (0, 0, 32), (0, -1, 0)])
def test_copy_number_out_of_range(s3, args):
    with pytest.raises(ValueError):
        s3.copy_number(*args)


def test_detector_positions(s3):
    segs = list(s3.segments(30.0, 40.0))
    assert {seg.z for seg in segs if seg.det == 0} == {-30.0}
    assert {seg.z for seg in segs if seg.det == 1} == {40.0}


def test_rings_tile_the_annulus(s3):
    segs = [seg for seg in s3.segments(0.0, 0.0) if seg.det == 0 and seg.sector == 0]
    assert segs[0].inner_radius == pytest.approx(s3.inner_radius)
    assert segs[-1].outer_radius == pytest.approx(s3.outer_radius)
    for a, b in zip(segs, segs[1:]):
        assert a.outer_radius == pytest.approx(b.inner_radius)


def test_sectors_cover_full_circle(s3):
    segs = [seg for seg in s3.segments(0.0, 0.0) if seg.det == 1 and seg.ring == 5]
    assert sum(seg.delta_phi for seg in segs) == pytest.approx(2.0 * math.pi)
    assert all(seg.half_thickness == pytest.approx(s3.thickness / 2.0) for seg in segs)


def test_checkerboard_colours(s3):
    segs = {(seg.ring, seg.sector): seg.colour
            for seg in s3.segments(0.0, 0.0) if seg.det == 0}
    assert segs[(0, 0)] == "yellow"
    assert segs[(0, 1)] == "red"
    assert segs[(1, 0)] == "red"
    assert segs[(1, 1)] == "yellow"