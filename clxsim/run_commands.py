"""Text commands that configure a RunAction."""

from __future__ import annotations

from typing import Callable

from clxsim.run import RunAction


class RunActionMessenger:
    """Applies the /Output/ commands to a RunAction."""

    def __init__(self, run_action: RunAction):
        self.run_action = run_action
        self._commands: dict[str, Callable[[str], str]] = {
            "/Output/FileName": self._file_name,
            "/Output/DiagnosticsFileName": self._diagnostics_name,
            "/Output/GammaMultTrigger": self._trigger,
            "/Output/OnlyWriteCoincidences": self._coincidences,
            "/Output/WriteDiagnostics": self._diagnostics,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._commands)

    def _file_name(self, value: str) -> str:
        self.run_action.output_file_name = value.strip()
        return f"Setting output file name to {value}"

    def _diagnostics_name(self, value: str) -> str:
        self.run_action.diagnostics_file_name = value.strip()
        return f"Setting diagnostics file name to {value}"

    def _trigger(self, value: str) -> str:
        self.run_action.gamma_trigger = int(value.strip())
        return f"Setting gamma-ray multiplicity trigger condition to {value}"

    def _coincidences(self, value: str) -> str:
        self.run_action.only_write_coincidences = True
        return "Only coincidence data will be written to output file."

    def _diagnostics(self, value: str) -> str:
        self.run_action.write_diagnostics = True
        return "Diagnostic information will be written to file."

    def apply(self, command: str, value: str = "") -> str:
        """Apply one command and return the message describing it."""
        try:
            action = self._commands[command]
        except KeyError:
            raise ValueError(f"unknown output command {command!r}") from None
        return action(value)