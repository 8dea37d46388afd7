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
Software Repository Management

The repository is a directory with one subdirectory per (lower case)
software type, each holding that type's RPM files:

    /system/software/repository/
        update/
            VRTSasum-update-2.0.1.rpm
        upgrade/
            platformx-upgrade-3.3.13.rpm

Nothing here locks the tree. Callers running add/remove/list concurrently
against one repository must serialize access themselves.
"""

import os
import shutil
from typing import List, Optional

from swupdate.utils.index import log_message
from swupdate.utils.errors import ValidationError, NotFoundError
from swupdate.modules.rpm import RPMManager, parse_metadata
from .records import PackageRecord, build_record

PACKAGE_EXTENSION = ".rpm"


class RepositoryIndex:
    """Lists, adds and removes packages in a software repository."""

    def __init__(self, root: str, rpm_manager: Optional[RPMManager] = None):
        self.root = root
        self.rpm = rpm_manager or RPMManager()

    def _type_dirs(self, software_type: str = "") -> List[str]:
        if software_type:
            return [software_type.lower()]

        if not os.path.isdir(self.root):
            log_message(f"Software repository '{self.root}' does not exist.", "WARNING")
            return []

        types = []
        for entry in sorted(os.listdir(self.root)):
            if os.path.isdir(os.path.join(self.root, entry)):
                types.append(entry)
            else:
                log_message(f"{os.path.join(self.root, entry)} is not a directory.", "DEBUG")
        return types

    def list_files(self, name: str = "", software_type: str = "") -> List[str]:
        """
        Find package files in the repository.

        Args:
            name: Only return the package file with this name
            software_type: Only look in this type's directory

        Returns:
            List[str]: Paths of matching package files
        """
        files = []
        for type_dir in self._type_dirs(software_type):
            current = os.path.normpath(os.path.join(self.root, type_dir))
            try:
                entries = sorted(os.listdir(current))
            except OSError as e:
                log_message(f"Unable to read contents of {current} directory: {e}", "DEBUG")
                continue

            for entry in entries:
                if not entry.endswith(PACKAGE_EXTENSION):
                    continue
                if not name or entry == name:
                    files.append(os.path.join(current, entry))

        log_message(f"Repository files: {files}", "DEBUG")
        return files

    def describe(self, files: List[str], product_version: str = "") -> List[PackageRecord]:
        """
        Build package records for the given files.

        Raises:
            SubprocessFailure: the metadata of a file could not be queried
        """
        records = []
        for path in files:
            metadata = self.rpm.query_info(path)
            fields = parse_metadata(metadata)
            records.append(build_record(fields, os.path.basename(path), product_version))
        return records

    def list(self, name: str = "", software_type: str = "", product_version: str = "") -> List[PackageRecord]:
        """List the repository's packages along with their details."""
        return self.describe(self.list_files(name, software_type), product_version)

    def add(self, package_path: str, product_version: str = "") -> str:
        """
        Move a package from the staging area into the repository.

        Args:
            package_path: Path of the package file to add
            product_version: Product version to resolve compatibility for

        Returns:
            str: New location of the package file

        Raises:
            NotFoundError: the file does not exist
            ValidationError: the path is a directory or the package type is unknown
        """
        if not os.path.exists(package_path):
            raise NotFoundError(f"Unable to stat on {package_path} software.")
        if os.path.isdir(package_path):
            raise ValidationError(f"{package_path} is not a valid software.")

        record = self.describe([package_path], product_version)[0]
        software_type = record.type.lower()
        if not software_type:
            raise ValidationError(f"Failed to determine the software type of the {package_path} file.")

        type_dir = os.path.join(self.root, software_type)
        os.makedirs(type_dir, mode=0o755, exist_ok=True)

        target = os.path.join(type_dir, os.path.basename(package_path))
        if os.path.exists(target):
            os.remove(target)
        shutil.move(package_path, target)

        log_message(f"✓ Added {software_type} software {os.path.basename(package_path)} to repository.")
        return target

    def remove(self, name: str = "", software_type: str = "") -> None:
        """
        Remove a package, or a whole type directory, from the repository.

        Raises:
            ValidationError: no type given
            NotFoundError: the package or type directory does not exist
        """
        if not self.root:
            raise ValidationError(
                f"Unable to remove {software_type} software {name}. Failed to determine software repository.")
        if not software_type:
            if name:
                raise ValidationError(
                    "Invalid usage. Software type must be specified when software name is specified.")
            raise ValidationError("Invalid usage. Software type must be specified.")

        target = os.path.normpath(os.path.join(self.root, software_type.lower(), name))
        if not os.path.exists(target):
            raise NotFoundError(f"Unable to remove {software_type} software {name}. Specified software not found.")

        if os.path.isdir(target):
            shutil.rmtree(target)
        else:
            os.remove(target)

        log_message(f"✓ Removed {software_type} software {name} from repository.")
