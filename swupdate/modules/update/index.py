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
Update Workflow Orchestrator

Drives the install, commit, reboot and rollback operations of a software
update. Each operation is a fixed sequence of plugin stages:

    install   preinstall, install          (rollback stage on failure)
    commit    commit-precheck, commit
    reboot    prereboot, system reboot     (rollback stage if prereboot fails)
    rollback  rollback-precheck, prerollback

Stages run strictly in order; a stage only runs if every earlier one
succeeded. Nothing here times out: a hung plugin blocks the operation.

The same action names can also be run directly against one package in the
repository (run_artifact_action), which installs the package if needed and
invokes the action script it ships.
"""

import os
import shlex
from typing import Dict, Optional, Tuple

from swupdate.utils.index import log_message
from swupdate.utils.config import UpdateConfig
from swupdate.utils.errors import UpdateManagerError, ValidationError, NotFoundError, SubprocessFailure
from swupdate.utils.executor import CommandExecutor
from swupdate.modules.rpm import RPMManager
from swupdate.modules.repo import RepositoryIndex
from .status import WorkflowStatus, RunStatus, STATUS_OK, STATUS_FAIL
from .plugins import PluginRunner, LibraryPluginRunner

OPERATION_STAGES: Dict[str, Tuple[str, ...]] = {
    "commit": ("commit-precheck", "commit"),
    "install": ("preinstall", "install"),
    "reboot": ("prereboot",),
    "rollback": ("rollback-precheck", "prerollback"),
}

OPERATIONS = tuple(OPERATION_STAGES)

COMPENSATING_STAGE = "rollback"


class WorkflowOrchestrator:
    """Runs update operations for one invocation."""

    def __init__(self, config: UpdateConfig,
                 plugin_runner: Optional[PluginRunner] = None,
                 executor: Optional[CommandExecutor] = None,
                 rpm_manager: Optional[RPMManager] = None):
        self.config = config
        self.executor = executor or CommandExecutor()
        self.plugin_runner = plugin_runner or LibraryPluginRunner(self.executor, config.shell_command)
        self.rpm = rpm_manager or RPMManager(self.executor, config.rpm_command)

    # Bucketed stage workflows

    def _run_stage(self, status: WorkflowStatus, operation: str, stage: str) -> RunStatus:
        """Run one stage and append its result to the operation's bucket."""
        log_message(f"Running {stage} plugins...")
        try:
            result = self.plugin_runner.run(stage, self.config.library_path)
        except UpdateManagerError as e:
            result = RunStatus(stage=stage, status=STATUS_FAIL, stdouterr=str(e))

        status.bucket(operation).append(result)
        if not result.succeeded:
            log_message(f"Failed to run {stage} plugins. {result.stdouterr}", "ERROR")
        return result

    def _run_stages(self, status: WorkflowStatus, operation: str) -> Optional[RunStatus]:
        """Run an operation's stages in order, stopping at the first failure."""
        for stage in OPERATION_STAGES[operation]:
            result = self._run_stage(status, operation, stage)
            if not result.succeeded:
                return result
        return None

    def _compensate(self, status: WorkflowStatus, operation: str) -> None:
        # Outcome is recorded in the bucket but never changes the result.
        log_message(f"Attempting {COMPENSATING_STAGE} after failed {operation}", "WARNING")
        self._run_stage(status, operation, COMPENSATING_STAGE)

    def commit(self, status: WorkflowStatus) -> bool:
        return self._run_stages(status, "commit") is None

    def install(self, status: WorkflowStatus) -> bool:
        if self._run_stages(status, "install") is not None:
            self._compensate(status, "install")
            return False
        return True

    def reboot(self, status: WorkflowStatus) -> bool:
        failed = self._run_stages(status, "reboot")
        if failed is not None:
            status.stdouterr = failed.stdouterr or f"Failed to run {failed.stage} plugins."
            self._compensate(status, "reboot")
            return False

        # Past this point the node is going down; a failure is reported
        # but there is nothing left to roll back.
        try:
            result = self.executor.run(shlex.split(self.config.reboot_command))
            rebooted = result.ok
        except SubprocessFailure as e:
            log_message(str(e), "ERROR")
            rebooted = False

        if not rebooted:
            log_message("Failed to reboot the system.", "ERROR")
            status.stdouterr = "Failed to reboot the system."
            return False
        return True

    def rollback(self, status: WorkflowStatus) -> bool:
        return self._run_stages(status, "rollback") is None

    def run(self, operation: str) -> WorkflowStatus:
        """
        Run one update operation.

        Args:
            operation: One of "install", "commit", "reboot", "rollback"

        Returns:
            WorkflowStatus: Every attempted stage plus the overall result

        Raises:
            ValidationError: unknown operation
        """
        if operation not in OPERATION_STAGES:
            raise ValidationError(f"Unknown update operation: {operation}")

        log_message(f"Starting {operation} of the update")
        status = WorkflowStatus()
        succeeded = getattr(self, operation)(status)

        if succeeded:
            status.status = STATUS_OK
            log_message(f"✓ Update {operation} completed successfully")
        else:
            status.status = STATUS_FAIL
            if not status.stdouterr:
                status.stdouterr = f"Failed to {operation} the update."
            log_message(f"✗ Failed to {operation} the update.", "ERROR")
        return status

    # Direct single-package actions

    def script_path(self, software_type: str, name: str, version: str, release: str, action: str) -> str:
        return os.path.join(self.config.install_root, software_type,
                            f"{name}-{version}-{release}", action)

    def run_artifact_action(self, action: str, name: str, software_type: str,
                            repository_path: str = "") -> None:
        """
        Run an action script shipped inside a repository package.

        For "install", any existing installation of the package is removed
        first and the package is (re)installed, which extracts the action
        scripts. Other actions expect the scripts to be in place already.

        Args:
            action: One of "install", "commit", "reboot", "rollback"
            name: File name of the package in the repository
            software_type: Type directory the package lives in
            repository_path: Repository root, defaults to the configured one

        Raises:
            ValidationError: missing name, type or an unknown action
            NotFoundError: the package is missing or not uniquely listed
            SubprocessFailure: installing the package or running the script failed
        """
        if not name:
            raise ValidationError("Invalid usage. Software name must be specified.")
        if not software_type:
            raise ValidationError("Invalid usage. Software type must be specified.")
        if action not in OPERATION_STAGES:
            raise ValidationError(f"Unknown update operation: {action}")

        software_type = software_type.lower()
        repository_path = repository_path or self.config.repository_path
        package_path = os.path.normpath(os.path.join(repository_path, software_type, name))
        if not os.path.exists(package_path):
            raise NotFoundError(f"Unable to {action} {software_type} software {name}. Specified software not found.")

        repository = RepositoryIndex(repository_path, self.rpm)
        records = repository.list(name=name, software_type=software_type)
        if len(records) != 1:
            log_message(f"Expected details of {name} software only, got {len(records)} records", "ERROR")
            raise NotFoundError(f"Failed to get details of {name} software.")
        record = records[0]

        if action == "install":
            if self.rpm.is_installed(record.name):
                # A previous attempt left the package installed; start clean.
                try:
                    self.rpm.uninstall(record.name)
                except SubprocessFailure as e:
                    log_message(f"Failed to remove previous installation of {record.name}: {e}", "WARNING")
            self.rpm.install(package_path)

        script = self.script_path(software_type, record.name, record.version, record.release, action)
        log_message(f"Script to be invoked: {script}")

        try:
            result = self.executor.run([self.config.shell_command, script,
                                        "-output-file", self.config.output_file,
                                        "-output-format", self.config.output_format])
        except SubprocessFailure:
            log_message(f"Failed to start {script} script of {package_path}", "ERROR")
            self._cleanup_failed_action(action, record.name)
            raise

        if not result.ok:
            log_message(f"Failed to run {script} script of {package_path}", "ERROR")
            self._cleanup_failed_action(action, record.name)
            raise SubprocessFailure(f"Failed to {action} software.", output=result.output,
                                    returncode=result.returncode)

        log_message(f"✓ Successfully completed {action} of {software_type} software {name} from repository.")

    def _cleanup_failed_action(self, action: str, rpm_name: str) -> None:
        # Only an install leaves a package behind; the caller's error is kept.
        if action != "install":
            return
        try:
            self.rpm.uninstall(rpm_name)
        except SubprocessFailure as e:
            log_message(f"Failed to clean up {rpm_name} after failed install: {e}", "ERROR")
