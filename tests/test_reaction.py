import math
import random

import pytest

from clxsim.reaction import (
    Reaction,
    beta_lab,
    ke_lab,
    recoil_beta_lab,
    recoil_ke_lab,
)

AMU = 931.494


@pytest.fixture
def reaction():
    return Reaction(48, 106, 106 * AMU, 82, 208, 208 * AMU)


def test_default_nuclei():
    reac = Reaction()
    assert (reac.beam_z, reac.beam_a, reac.recoil_z, reac.recoil_a) == (48, 106, 82, 208)
    assert reac.recoil_threshold == 0.0


@pytest.mark.parametrize("theta_cm", [0.3, 1.0, 2.0, 2.9])
@pytest.mark.parametrize("ex", [0.0, 0.6])
def test_energy_sharing_conserves_energy(reaction, theta_cm, ex):
    ep = 300.0
    total = reaction.ke_lab(theta_cm, ep, ex) + reaction.recoil_ke_lab(theta_cm, ep, ex)
    assert total == pytest.approx(ep - ex)


def test_methods_agree_with_module_functions(reaction):
    args = (1.2, 300.0)
    assert reaction.ke_lab(*args, 0.5) == ke_lab(
        *args, reaction.beam_mass, reaction.recoil_mass, 0.5
    )
    assert reaction.recoil_ke_lab(*args, 0.5) == recoil_ke_lab(
        *args, reaction.beam_mass, reaction.recoil_mass, 0.5
    )


def test_equal_masses_scatter_at_right_angles():
    reac = Reaction(8, 16, 16 * AMU, 8, 16, 16 * AMU)
    for theta_cm in (0.5, 1.0, 2.0):
        total = reac.theta_lab(theta_cm, 50.0) + reac.recoil_theta_lab(theta_cm, 50.0)
        assert total == pytest.approx(math.pi / 2)


def test_backward_cm_angle_gives_backward_lab_for_light_projectile():
    reac = Reaction(6, 12, 12 * AMU, 82, 208, 208 * AMU)
    assert reac.theta_lab(2.8, 50.0) > math.pi / 2


def test_beta_consistent_with_kinetic_energy(reaction):
    bm, rm = reaction.beam_mass, reaction.recoil_mass
    for beta, ke, mass in (
        (beta_lab(1.0, 300.0, bm, rm), ke_lab(1.0, 300.0, bm, rm), bm),
        (recoil_beta_lab(1.0, 300.0, bm, rm), recoil_ke_lab(1.0, 300.0, bm, rm), rm),
    ):
        assert 0.0 < beta < 1.0
        gamma = 1.0 / math.sqrt(1.0 - beta * beta)
        assert (gamma - 1.0) * mass == pytest.approx(ke)


def test_rutherford_scaling(reaction):
    small = reaction.rutherford_cm(0.4, 300.0)
    large = reaction.rutherford_cm(1.2, 300.0)
    ratio = (math.sin(1.2 / 2) / math.sin(0.4 / 2)) ** 4
    assert small / large == pytest.approx(ratio)
    heavier = Reaction(96, 106, reaction.beam_mass, 82, 208, reaction.recoil_mass)
    assert heavier.rutherford_cm(0.4, 300.0) == pytest.approx(4 * small)


def test_sample_before_construct_raises(reaction):
    with pytest.raises(RuntimeError):
        reaction.sample_rutherford_cm(random.Random(1))


def test_default_range_when_none_defined(reaction):
    reaction.construct_rutherford_cm(300.0)
    assert reaction.good_lab_thetas == pytest.approx([math.radians(13), math.pi])
    assert reaction.only_p and not reaction.only_r


@pytest.mark.parametrize("thetas", [[0.5], [1.0, 0.5], [0.2, 0.4, 0.9]])
def test_bad_ranges_fall_back_to_default(reaction, thetas):
    for theta in thetas:
        reaction.add_theta_lab(theta)
    reaction.construct_rutherford_cm(300.0)
    assert reaction.good_lab_thetas == pytest.approx([math.radians(13), math.pi])
    assert reaction.only_p


def test_samples_lie_in_requested_projectile_range(reaction):
    low, high = math.radians(20), math.radians(50)
    reaction.add_theta_lab(low)
    reaction.add_theta_lab(high)
    reaction.set_only_p()
    reaction.construct_rutherford_cm(300.0)
    rng = random.Random(7)
    tolerance = math.radians(0.5)
    for _ in range(300):
        theta_cm = reaction.sample_rutherford_cm(rng)
        assert math.radians(5) <= theta_cm < math.pi
        lab = reaction.theta_lab(theta_cm, 300.0)
        assert low - tolerance < lab < high + tolerance


def test_samples_respect_recoil_range(reaction):
    low, high = math.radians(30), math.radians(60)
    reaction.add_theta_lab(low)
    reaction.add_theta_lab(high)
    reaction.set_only_r()
    reaction.construct_rutherford_cm(300.0)
    rng = random.Random(3)
    tolerance = math.radians(0.5)
    for _ in range(200):
        lab = reaction.recoil_theta_lab(reaction.sample_rutherford_cm(rng), 300.0)
        assert low - tolerance < lab < high + tolerance


def test_unreachable_range_raises(reaction):
    reaction.add_theta_lab(0.001)
    reaction.add_theta_lab(0.002)
    reaction.set_only_p()
    with pytest.raises(ValueError):
        reaction.construct_rutherford_cm(300.0)


def test_only_flags_are_exclusive(reaction):
    reaction.set_only_p()
    reaction.set_only_r()
    assert (reaction.only_p, reaction.only_r) == (False, True)
    reaction.set_only_p()
    assert (reaction.only_p, reaction.only_r) == (True, False)