import pytest

from clxsim.polarization import Polarization
from clxsim.polarization_commands import PolarizationMessenger


@pytest.fixture
def projectile():
    pol = Polarization(True)
    return pol, PolarizationMessenger(pol, True)


def test_statistical_tensor_file(projectile):
    pol, messenger = projectile
    message = messenger.apply("/Excitation/Projectile/StatisticalTensors", "tensors.txt")
    assert pol.file_name == "tensors.txt"
    assert message == "Setting projectile statistical tensor file to tensors.txt"


@pytest.mark.parametrize(
    "name, attribute",
    [
        ("AverageJ", "average_j"),
        ("Gamma", "gamma"),
        ("Lambda", "lambda_star"),
        ("TauC", "tau_c"),
        ("GFactor", "g_factor"),
        ("FieldCoefficient", "field_coef"),
        ("FieldExponent", "field_exp"),
    ],
)
def test_deorientation_parameters(projectile, name, attribute):
    pol, messenger = projectile
    messenger.apply(f"/DeorientationEffect/Projectile/{name}", "1.25")
    assert getattr(pol, attribute) == 1.25


def test_messages_carry_units(projectile):
    _, messenger = projectile
    assert messenger.apply("/DeorientationEffect/Projectile/TauC", "2.5") == (
        "Setting the correlation time in the projectile to 2.5 ps"
    )
    assert messenger.apply("/DeorientationEffect/Projectile/FieldCoefficient", "6e-6") == (
        "Setting hyperfine field coefficient in the projectile to 6e-6*10^8 T"
    )


@pytest.mark.parametrize(
    "text, expected",
    [("true", True), ("1", True), ("yes", True), ("false", False), ("0", False)],
)
def test_calculate_gk_flag(projectile, text, expected):
    pol, messenger = projectile
    pol.calc_gk = not expected
    messenger.apply("/DeorientationEffect/Projectile/CalculateGk", text)
    assert pol.calc_gk is expected


def test_recoil_paths():
    pol = Polarization(False)
    messenger = PolarizationMessenger(pol, False)
    message = messenger.apply("/DeorientationEffect/Recoil/AverageJ", "2.0")
    assert pol.average_j == 2.0
    assert message == "Setting average atomic spin of the recoil to 2.0"
    assert "/Excitation/Recoil/StatisticalTensors" in messenger.commands
    assert all("Projectile" not in command for command in messenger.commands)


def test_projectile_messenger_rejects_recoil_command(projectile):
    _, messenger = projectile
    with pytest.raises(ValueError):
        messenger.apply("/DeorientationEffect/Recoil/AverageJ", "2.0")


def test_bad_number_raises(projectile):
    pol, messenger = projectile
    with pytest.raises(ValueError):
        messenger.apply("/DeorientationEffect/Projectile/Gamma", "wide")
    assert pol.gamma == 0.02