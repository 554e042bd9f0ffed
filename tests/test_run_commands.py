import pytest

from clxsim.run import RunAction
from clxsim.run_commands import RunActionMessenger


@pytest.fixture
def messenger():
    return RunActionMessenger(RunAction())


def test_file_name(messenger):
    message = messenger.apply("/Output/FileName", "run.dat")
    assert messenger.run_action.output_file_name == "run.dat"
    assert message == "Setting output file name to run.dat"


def test_diagnostics_file_name(messenger):
    messenger.apply("/Output/DiagnosticsFileName", "diag.dat")
    assert messenger.run_action.diagnostics_file_name == "diag.dat"
    assert messenger.run_action.output_file_name == "output.dat"


def test_gamma_trigger(messenger):
    messenger.apply("/Output/GammaMultTrigger", "2")
    assert messenger.run_action.gamma_trigger == 2


def test_gamma_trigger_needs_integer(messenger):
    with pytest.raises(ValueError):
        messenger.apply("/Output/GammaMultTrigger", "two")


def test_flags(messenger):
    assert not messenger.run_action.only_write_coincidences
    messenger.apply("/Output/OnlyWriteCoincidences")
    messenger.apply("/Output/WriteDiagnostics")
    assert messenger.run_action.only_write_coincidences
    assert messenger.run_action.write_diagnostics


def test_unknown_command(messenger):
    with pytest.raises(ValueError):
        messenger.apply("/Output/Nothing", "1")


def test_command_list(messenger):
    assert set(messenger.commands) == {
        "/Output/FileName",
        "/Output/DiagnosticsFileName",
        "/Output/GammaMultTrigger",
        "/Output/OnlyWriteCoincidences",
        "/Output/WriteDiagnostics",
    }