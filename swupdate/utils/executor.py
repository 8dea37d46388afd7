"""
Software Update Management System
Copyright (C) 2024 HOMESERVER LLC

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

"""
Command execution for external tools.

Every external process (rpm, stage plugins, bundled scripts, reboot) is run
through a CommandExecutor instance handed to the component that needs it.
Tests pass a fake executor with scripted results instead.
"""

import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Dict

from .index import log_message
from .errors import SubprocessFailure


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""
    argv: List[str]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandExecutor:
    """Runs external commands synchronously, capturing combined stdout and stderr."""

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self.env = env

    def run(self, argv: List[str]) -> CommandResult:
        """
        Run a command and wait for it to finish.

        A non-zero exit status is reported in the result, not raised.

        Raises:
            SubprocessFailure: the command could not be started at all
        """
        argv = [os.path.expandvars(argv[0])] + list(argv[1:])
        log_message(f"Running: {' '.join(argv)}", "DEBUG")
        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=self.env,
            )
        except OSError as e:
            log_message(f"Failed to start {argv[0]}: {e}", "ERROR")
            raise SubprocessFailure(f"Failed to start {argv[0]}: {e}") from e

        output = completed.stdout or ""
        if output.strip():
            log_message(f"Stdout & Stderr: {output.strip()}", "DEBUG")
        return CommandResult(argv=argv, returncode=completed.returncode, output=output)

    def check(self, argv: List[str], message: Optional[str] = None) -> CommandResult:
        """
        Run a command and raise if it exits non-zero.

        Args:
            argv: Command and arguments
            message: Error text for the raised exception

        Raises:
            SubprocessFailure: with the command's combined output attached
        """
        result = self.run(argv)
        if not result.ok:
            text = message or f"Command failed: {' '.join(argv)}"
            log_message(f"{text} (exit status {result.returncode})", "ERROR")
            raise SubprocessFailure(text, output=result.output, returncode=result.returncode)
        return result
