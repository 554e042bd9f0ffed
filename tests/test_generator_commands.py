import pytest

from clxsim.generator import PrimaryGenerator
from clxsim.generator_commands import PrimaryGeneratorMessenger
from clxsim.modes import Mode


@pytest.fixture
def generator():
    return PrimaryGenerator()


@pytest.fixture
def messenger(generator):
    return PrimaryGeneratorMessenger(generator)


def test_beam_position(messenger, generator):
    message = messenger.apply("/Beam/PositionX", "2 mm")
    assert generator.beam_x == pytest.approx(2.0)
    assert message == "Setting X position of incoming beam to 2 mm"


def test_beam_energy_and_sigma(messenger, generator):
    messenger.apply("/Beam/Energy", "250 MeV")
    messenger.apply("/Beam/SigmaEn", "3 MeV")
    assert generator.beam_en == pytest.approx(250.0)
    assert generator.sigma_en == pytest.approx(3.0)


def test_sigma_positions(messenger, generator):
    messenger.apply("/Beam/SigmaX", "1.5 mm")
    messenger.apply("/Beam/SigmaY", "0.5 mm")
    assert (generator.sigma_x, generator.sigma_y) == pytest.approx((1.5, 0.5))


def test_delta_e(messenger, generator):
    message = messenger.apply("/Reaction/DeltaE", "1.2 MeV")
    assert generator.delta_e == pytest.approx(1.2)
    assert message.startswith("Setting DeltaE = -Q of scattering reaction to")


def test_mode(messenger, generator):
    message = messenger.apply("/Mode", "Scattering")
    assert generator.mode is Mode.SCATTERING
    assert message == "Simulation mode: Scattering"


def test_invalid_mode(messenger):
    with pytest.raises(ValueError):
        messenger.apply("/Mode", "Nonsense")


def test_optimize(messenger, generator):
    messenger.apply("/Reaction/Optimize")
    assert generator.optimize is True


def test_only_flags_are_exclusive(messenger, generator):
    messenger.apply("/Reaction/OnlyProjectiles")
    assert (generator.only_p, generator.only_r) == (True, False)
    messenger.apply("/Reaction/OnlyRecoils")
    assert (generator.only_p, generator.only_r) == (False, True)


def test_source_energy_makes_simple_source(messenger, generator):
    assert not generator.is_simple_source
    messenger.apply("/Source/Energy", "1.332 MeV")
    assert generator.source_energy == pytest.approx(1.332)
    assert generator.is_simple_source


def test_source_position(messenger, generator):
    message = messenger.apply("/Source/Position", "1 2 3 mm")
    assert generator.source_position == pytest.approx((1.0, 2.0, 3.0))
    assert message == "Setting gamma source position to 1 2 3 mm"


def test_source_position_needs_three_numbers(messenger):
    with pytest.raises(ValueError):
        messenger.apply("/Source/Position", "1 2 mm")


def test_update_without_masses_fails(messenger):
    messenger.apply("/Mode", "Scattering")
    with pytest.raises(ValueError):
        messenger.apply("/UpdateGenerator")


def test_update_source_returns_no_message(messenger, generator):
    messenger.apply("/Source/Energy", "1 MeV")
    assert messenger.apply("/UpdateGenerator") == ""
    assert generator.generate_source()[0].energy == pytest.approx(1.0)


def test_unknown_command(messenger):
    with pytest.raises(ValueError):
        messenger.apply("/Beam/Nothing", "1 mm")


def test_commands_listed(messenger):
    assert "/Mode" in messenger.commands
    assert "/Source/Position" in messenger.commands
    assert len(messenger.commands) == len(set(messenger.commands))