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
Exception types raised by the software update manager.
"""

from typing import Optional


class UpdateManagerError(Exception):
    """Base exception for software update manager failures."""
    pass


class ValidationError(UpdateManagerError):
    """Required input is missing or invalid."""
    pass


class NotFoundError(UpdateManagerError):
    """An artifact or repository path does not exist, or a lookup did not yield exactly one match."""
    pass


class FormatError(UpdateManagerError):
    """Package metadata could not be decoded under the selected schema."""
    pass


class AmbiguousCompatibilityError(UpdateManagerError):
    """A compatibility matrix lists the same version pattern more than once."""
    pass


class IncompatibleVersionError(UpdateManagerError):
    """No compatibility entry matches the requested product version."""
    pass


class SubprocessFailure(UpdateManagerError):
    """An external command or script exited non-zero or could not be started."""

    def __init__(self, message: str, output: str = "", returncode: Optional[int] = None):
        super().__init__(message)
        self.output = output
        self.returncode = returncode
