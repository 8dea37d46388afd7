"""
Shared test fixtures and fakes.

No test here spawns a real rpm, shell or reboot: external commands go through
FakeExecutor and stage plugins through FakePluginRunner.
"""

import json
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from swupdate.utils.config import UpdateConfig
from swupdate.utils.errors import SubprocessFailure
from swupdate.utils.executor import CommandExecutor, CommandResult
from swupdate.modules.rpm import RPMManager
from swupdate.modules.update.plugins import PluginRunner
from swupdate.modules.update.status import RunStatus, PluginStatus, STATUS_OK


RPM = "/usr/bin/rpm"

V1_METADATA = textwrap.dedent("""\
    Name        : platformx-upgrade
    Version     : 3.3.13
    Release     : 20200325132333
    Architecture: x86_64
    Install Date: (not installed)
    Group       : Unspecified
    Size        : 4150750911
    Signature   : RSA/SHA256, Wed 25 Mar 2020 03:05:55 PM PDT, Key ID cf784714d9712e70
    Source RPM  : platformx-upgrade-3.3.13-20200325132333.src.rpm
    Build Date  : Wed 25 Mar 2020 02:42:20 PM PDT
    Relocations : /system/upgrade/repository/platformx_core
    URL         : https://www.example.com/support
    Summary     : Provides platformx-upgrade.
    Description :
    Platform Upgrade Package. Will reboot system.
    Type:Upgrade
    VersionInfo:[{"Version":"0.0.9","Reboot":"Yes","Estimate":{"hours":"0","minutes":"20","seconds":"15"}},{"Version":"3.*","Reboot":"No","Estimate":{"hours":"1","minutes":"5","seconds":"0"}}]
""")

V2_RPM_INFO = {
    "description": [
        "Sample multi-line description of the update RPM.",
        "Each item is displayed as a separate paragraph.",
    ],
    "type": "Update",
    "compatibility-info": [
        {
            "product-version": "*",
            "install": {
                "confirmation-message": ["Restart required."],
                "requires-restart": True,
                "supports-rollback": False,
                "estimated-minutes": 35,
            },
            "rollback": {"confirmation-message": ["Rolling back."], "requires-restart": True,
                         "estimated-minutes": 20},
            "commit": {"confirmation-message": ["Cannot roll back after commit."], "estimated-minutes": 5},
        },
        {
            "product-version": "3.*",
            "install": {
                "confirmation-message": ["Stop all instances first."],
                "requires-restart": False,
                "supports-rollback": True,
                "estimated-minutes": 25,
            },
            "rollback": {"confirmation-message": ["Snapshot will be reverted."], "requires-restart": True,
                         "estimated-minutes": 40},
            "commit": {"confirmation-message": ["Cannot roll back after commit."], "estimated-minutes": 5},
        },
    ],
}

V2_METADATA = textwrap.dedent("""\
    Name        : VRTSasum-update
    Version     : 2.0.1
    Release     : 20200723001743
    Architecture: x86_64
    Install Date: (not installed)
    Signature   : RSA/SHA256, Mon 06 Jul 2020 02:41:26 PM PDT, Key ID cf784714d9712e70
    Build Date  : Wed 22 Jul 2020 05:17:50 PM PDT
    Relocations : (not relocatable)
    URL         : https://www.example.com/support
    Summary     : Sample Update RPM
    Description :
    ASUM RPM Format Version : 2
""") + f"RPM Info    : {json.dumps(V2_RPM_INFO)}\n"


class FakeExecutor(CommandExecutor):
    """
    Records every command and answers with scripted results.

    Responses are matched on an argv prefix; the most recently scripted
    matching prefix wins. Unscripted commands succeed with no output.
    """

    def __init__(self):
        super().__init__()
        self.calls: List[List[str]] = []
        self._responses: List[Tuple[List[str], CommandResult, bool]] = []

    def script(self, prefix: List[str], returncode: int = 0, output: str = "", fail_to_start: bool = False):
        self._responses.append((list(prefix), CommandResult(list(prefix), returncode, output), fail_to_start))

    def run(self, argv: List[str]) -> CommandResult:
        argv = list(argv)
        self.calls.append(argv)
        for prefix, result, fail_to_start in reversed(self._responses):
            if argv[:len(prefix)] == prefix:
                if fail_to_start:
                    raise SubprocessFailure(f"Failed to start {argv[0]}")
                return CommandResult(argv, result.returncode, result.output)
        return CommandResult(argv, 0, "")

    def called(self, prefix: List[str]) -> List[List[str]]:
        return [argv for argv in self.calls if argv[:len(prefix)] == list(prefix)]


class FakePluginRunner(PluginRunner):
    """Returns scripted stage outcomes; unscripted stages succeed."""

    def __init__(self, outcomes: Optional[Dict[str, str]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.outcomes = outcomes or {}
        self.errors = errors or {}
        self.stages: List[str] = []

    def run(self, stage: str, library: str) -> RunStatus:
        self.stages.append(stage)
        if stage in self.errors:
            raise self.errors[stage]

        status = self.outcomes.get(stage, STATUS_OK)
        stdouterr = "" if status == STATUS_OK else f"{stage} plugin failed"
        return RunStatus(
            stage=stage,
            status=status,
            stdouterr=stdouterr,
            plugins=[PluginStatus(name=f"00-sample.{stage}", status=status, stdouterr=stdouterr)],
        )


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def rpm_manager(executor: FakeExecutor) -> RPMManager:
    return RPMManager(executor, RPM)


@pytest.fixture
def repository_root(tmp_path: Path) -> Path:
    """Return an empty software repository directory."""
    root = tmp_path / "repository"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, repository_root: Path) -> UpdateConfig:
    library = tmp_path / "library"
    library.mkdir()
    return UpdateConfig(
        repository_path=str(repository_root),
        install_root=str(tmp_path / "install"),
        library_path=str(library),
        log_dir=str(tmp_path / "logs"),
        output_file=str(tmp_path / "out" / "status.yaml"),
        output_format="yaml",
        rpm_command=RPM,
        shell_command="/bin/sh",
        reboot_command="systemctl reboot",
    )


def add_package(root: Path, software_type: str, file_name: str, executor: FakeExecutor, metadata: str) -> Path:
    """Create a package file in a repository and script its rpm query."""
    type_dir = root / software_type
    type_dir.mkdir(parents=True, exist_ok=True)
    path = type_dir / file_name
    path.write_bytes(b"rpm")
    executor.script([RPM, "-q", "-p", "--info", str(path)], output=metadata)
    return path
