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
Package validation: product version compatibility and signatures.
"""

import os
from typing import Optional

from swupdate.utils.index import log_message
from swupdate.utils.errors import NotFoundError, ValidationError, IncompatibleVersionError
from swupdate.modules.rpm import RPMManager
from swupdate.modules.repo import RepositoryIndex
from .version import compare


def file_exists(file_path: str) -> None:
    if not os.path.exists(file_path):
        raise NotFoundError(f"{file_path} file does not exist")


def check_compatibility(product_version: str, rpm_path: str, rpm_manager: Optional[RPMManager] = None) -> str:
    """
    Check that a package applies to the running product version.

    Args:
        product_version: Version of the running product
        rpm_path: Path of the package file
        rpm_manager: Package manager wrapper to query the file with

    Returns:
        str: The matched compatibility version

    Raises:
        ValidationError: no product version given
        NotFoundError: the file does not exist
        IncompatibleVersionError: no compatibility entry matches
    """
    if not product_version:
        raise ValidationError("Product version must be specified.")
    file_exists(rpm_path)

    repository = RepositoryIndex(os.path.dirname(rpm_path), rpm_manager)
    record = repository.describe([rpm_path], product_version)[0]

    if not record.matched_version or not compare(product_version, record.matched_version):
        raise IncompatibleVersionError(
            f"The {os.path.basename(rpm_path)} software file is not compatible for {product_version} version.")

    log_message(f"✓ {os.path.basename(rpm_path)} is compatible with product version {product_version} "
                f"(matched {record.matched_version})")
    return record.matched_version


def validate_signature(rpm_path: str, rpm_manager: Optional[RPMManager] = None) -> None:
    """
    Check that a package is signed and that its signature verifies.

    Raises:
        NotFoundError: the file does not exist
        ValidationError: the package is not signed
        SubprocessFailure: rpm could not be queried or verification failed
    """
    file_exists(rpm_path)
    rpm_manager = rpm_manager or RPMManager()

    if not rpm_manager.is_signed(rpm_path):
        raise ValidationError(
            f"RPM file {rpm_path} is not signed. Only install updates that have been "
            f"downloaded from or provided by the vendor.")

    rpm_manager.verify_signature(rpm_path)
    log_message(f"✓ Signature of {os.path.basename(rpm_path)} verified")
