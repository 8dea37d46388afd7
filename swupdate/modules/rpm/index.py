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
RPM package manager wrapper.

Queries, installs, uninstalls and verifies RPM files by running the rpm tool
through a CommandExecutor.
"""

import os
from typing import Optional

from swupdate.utils.index import log_message
from swupdate.utils.errors import SubprocessFailure
from swupdate.utils.executor import CommandExecutor
from .metadata import parse_metadata

DEFAULT_RPM_COMMAND = "/usr/bin/rpm"

# Printed by `rpm -qip` in the Signature field of an unsigned package.
UNSIGNED_MARKER = "(none)"


class RPMManager:
    """Thin wrapper over the rpm command line tool."""

    def __init__(self, executor: Optional[CommandExecutor] = None, rpm_command: str = DEFAULT_RPM_COMMAND):
        self.executor = executor or CommandExecutor()
        self.rpm_command = rpm_command

    def query_info(self, rpm_path: str) -> str:
        """
        Query the metadata of an RPM file.

        Returns:
            str: Raw `rpm -q -p --info` output

        Raises:
            SubprocessFailure: rpm could not read the file
        """
        rpm_path = os.path.normpath(rpm_path)
        return self.executor.check(
            [self.rpm_command, "-q", "-p", "--info", rpm_path],
            f"Failed to get {rpm_path} RPM details.",
        ).output

    def is_installed(self, rpm_name: str) -> bool:
        result = self.executor.run([self.rpm_command, "-q", rpm_name])
        if not result.ok:
            log_message(f"RPM {rpm_name} is not installed", "DEBUG")
        return result.ok

    def install(self, rpm_path: str) -> None:
        self.executor.check(
            [self.rpm_command, "-Uvh", os.path.normpath(rpm_path)],
            f"Failed to install {rpm_path} RPM.",
        )

    def uninstall(self, rpm_name: str) -> None:
        self.executor.check(
            [self.rpm_command, "-e", rpm_name],
            f"Failed to uninstall {rpm_name} software.",
        )

    def signature(self, rpm_path: str) -> str:
        """
        Read the Signature field of an RPM file.

        Returns:
            str: The signature description, "(none)" for unsigned packages
        """
        output = self.executor.check(
            [self.rpm_command, "-qip", rpm_path],
            f"Failed to query signature of {rpm_path}.",
        ).output
        return parse_metadata(output).get("Signature", "")

    def is_signed(self, rpm_path: str) -> bool:
        signature = self.signature(rpm_path)
        return bool(signature) and UNSIGNED_MARKER not in signature

    def verify_signature(self, rpm_path: str) -> str:
        """
        Cryptographically verify the package digests and signature.

        Returns:
            str: rpm's verification report

        Raises:
            SubprocessFailure: verification failed
        """
        result = self.executor.run([self.rpm_command, "-Kv", rpm_path])
        log_message(result.output, "DEBUG")
        if not result.ok:
            raise SubprocessFailure(
                f"Signature validation failed for {rpm_path}.",
                output=result.output,
                returncode=result.returncode,
            )
        return result.output
