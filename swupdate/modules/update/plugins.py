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
Stage plugin runners.

The workflow orchestrator hands each stage (preinstall, install, commit, ...)
to a plugin runner and records the RunStatus it returns. Runners subclass PluginRunner;
LibraryPluginRunner is the default and runs every `<library>/*.<stage>` script in name order.
"""

import os
from abc import ABC, abstractmethod
from typing import List, Optional

from swupdate.utils.index import log_message
from swupdate.utils.errors import UpdateManagerError
from swupdate.utils.executor import CommandExecutor
from .status import RunStatus, PluginStatus, STATUS_OK, STATUS_FAIL


class PluginRunner(ABC):
    """Interface for running all plugins of one stage type."""

    @abstractmethod
    def run(self, stage: str, library: str) -> RunStatus:
        """Run every plugin of a stage and report the combined result."""


class LibraryPluginRunner(PluginRunner):
    """Runs the stage's plugin scripts found in a plugin library directory."""

    def __init__(self, executor: Optional[CommandExecutor] = None, shell_command: str = "/bin/sh"):
        self.executor = executor or CommandExecutor()
        self.shell_command = shell_command

    def discover(self, stage: str, library: str) -> List[str]:
        suffix = f".{stage}"
        return [
            os.path.join(library, entry)
            for entry in sorted(os.listdir(library))
            if entry.endswith(suffix) and os.path.isfile(os.path.join(library, entry))
        ]

    def run(self, stage: str, library: str) -> RunStatus:
        result = RunStatus(stage=stage)

        if not os.path.isdir(library):
            result.status = STATUS_FAIL
            result.stdouterr = f"Plugins library {library} does not exist."
            log_message(result.stdouterr, "ERROR")
            return result

        plugins = self.discover(stage, library)
        log_message(f"Found {len(plugins)} {stage} plugins", "DEBUG")

        for path in plugins:
            name = os.path.basename(path)
            try:
                outcome = self.executor.run([self.shell_command, path])
                plugin = PluginStatus(name=name, status=STATUS_OK if outcome.ok else STATUS_FAIL,
                                      stdouterr=outcome.output)
            except UpdateManagerError as e:
                plugin = PluginStatus(name=name, status=STATUS_FAIL, stdouterr=str(e))

            if plugin.status == STATUS_OK:
                log_message(f"  ✓ {name}")
            else:
                log_message(f"  ✗ {name}", "ERROR")
            result.plugins.append(plugin)

        failed = [plugin.name for plugin in result.plugins if plugin.status != STATUS_OK]
        if failed:
            result.status = STATUS_FAIL
            result.stdouterr = f"Failed to run {stage} plugins: {', '.join(failed)}"
        else:
            result.status = STATUS_OK
        return result
