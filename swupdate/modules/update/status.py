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
Run status of update workflow stages.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any

STATUS_OK = "Succeeded"
STATUS_FAIL = "Failed"


@dataclass
class PluginStatus:
    """Result of a single plugin within a stage."""
    name: str
    status: str
    stdouterr: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"Name": self.name, "Status": self.status, "StdOutErr": self.stdouterr}


@dataclass
class RunStatus:
    """Result of running every plugin of one stage."""
    stage: str
    status: str = ""
    stdouterr: str = ""
    plugins: List[PluginStatus] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Type": self.stage,
            "Plugins": [plugin.to_dict() for plugin in self.plugins],
            "Status": self.status,
            "StdOutErr": self.stdouterr,
        }


@dataclass
class WorkflowStatus:
    """
    Status of one update operation.

    Every stage attempted is appended to its operation's bucket, including
    compensating rollback stages, so a failed status still shows the whole
    sequence that ran.
    """
    install: List[RunStatus] = field(default_factory=list)
    reboot: List[RunStatus] = field(default_factory=list)
    rollback: List[RunStatus] = field(default_factory=list)
    commit: List[RunStatus] = field(default_factory=list)
    status: str = ""
    stdouterr: str = ""

    def bucket(self, operation: str) -> List[RunStatus]:
        return getattr(self, operation)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for key, runs in (("Install", self.install), ("Reboot", self.reboot),
                          ("Rollback", self.rollback), ("Commit", self.commit)):
            if runs:
                data[key] = [run.to_dict() for run in runs]
        data["Status"] = self.status
        data["StdOutErr"] = self.stdouterr
        return data
