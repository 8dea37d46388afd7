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
Product version compatibility matching.

Each update package carries a compatibility matrix: a list of entries keyed
by a product version pattern such as "3.1.0", "3.*" or "*". Given the
version of the running product, select_compatibility() picks the entry that
applies.

Patterns are matched segment by segment on ".". A "*" segment matches
whatever follows, so "2.0.0.*" accepts "2.0", "2.0.0" and "2.0.0.9". This
is not an ordering comparison: "2.0" does not match "2.2".
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple

from swupdate.utils.index import log_message
from swupdate.utils.errors import (
    FormatError,
    AmbiguousCompatibilityError,
    IncompatibleVersionError,
)

WILDCARD = "*"


@dataclass(frozen=True)
class Estimate:
    """Estimated duration of an update, as strings."""
    hours: str = "0"
    minutes: str = "0"
    seconds: str = "0"

    def to_dict(self) -> Dict[str, str]:
        return {"hours": self.hours, "minutes": self.minutes, "seconds": self.seconds}

    @classmethod
    def from_dict(cls, data: Any) -> 'Estimate':
        if not isinstance(data, dict):
            return cls(hours="", minutes="", seconds="")
        return cls(
            hours=str(data.get("hours", "")),
            minutes=str(data.get("minutes", "")),
            seconds=str(data.get("seconds", "")),
        )


@dataclass(frozen=True)
class StageInfo:
    """What the user should be told before running one stage of an update."""
    confirmation_message: Tuple[str, ...] = ()
    estimated_minutes: int = 0
    requires_restart: Optional[bool] = None
    supports_rollback: Optional[bool] = None

    def is_empty(self) -> bool:
        return self == StageInfo()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "confirmation-message": list(self.confirmation_message),
            "estimated-minutes": self.estimated_minutes,
        }
        if self.requires_restart is not None:
            data["requires-restart"] = self.requires_restart
        if self.supports_rollback is not None:
            data["supports-rollback"] = self.supports_rollback
        return data

    @classmethod
    def from_dict(cls, data: Any) -> 'StageInfo':
        if not isinstance(data, dict):
            return cls()

        message = data.get("confirmation-message") or []
        if isinstance(message, str):
            message = [message]

        try:
            minutes = int(data.get("estimated-minutes") or 0)
        except (TypeError, ValueError):
            log_message(f"Invalid estimated-minutes value: {data.get('estimated-minutes')}", "WARNING")
            minutes = 0

        restart = data.get("requires-restart")
        rollback = data.get("supports-rollback")
        return cls(
            confirmation_message=tuple(str(line) for line in message),
            estimated_minutes=minutes,
            requires_restart=bool(restart) if restart is not None else None,
            supports_rollback=bool(rollback) if rollback is not None else None,
        )


@dataclass(frozen=True)
class CompatibilityEntry:
    """
    One row of a package's compatibility matrix.

    V1 packages describe each row with a reboot indicator and a time
    estimate; V2 packages describe the install, rollback and commit stages.
    """
    version: str
    reboot: str = ""
    estimate: Estimate = field(default_factory=Estimate)
    install: StageInfo = field(default_factory=StageInfo)
    rollback: StageInfo = field(default_factory=StageInfo)
    commit: StageInfo = field(default_factory=StageInfo)

    @classmethod
    def from_v1_dict(cls, data: Dict[str, Any]) -> 'CompatibilityEntry':
        return cls(
            version=str(data.get("Version", "")),
            reboot=str(data.get("Reboot", "")),
            estimate=Estimate.from_dict(data.get("Estimate")),
        )

    @classmethod
    def from_v2_dict(cls, data: Dict[str, Any]) -> 'CompatibilityEntry':
        return cls(
            version=str(data.get("product-version", "")),
            install=StageInfo.from_dict(data.get("install")),
            rollback=StageInfo.from_dict(data.get("rollback")),
            commit=StageInfo.from_dict(data.get("commit")),
        )


def compare(product_version: str, pattern: str) -> bool:
    """
    Check whether a version pattern matches a product version.

    Args:
        product_version: Version of the running product, e.g. "2.0.0.9"
        pattern: Version or pattern from a compatibility matrix, e.g. "2.0.0.*"

    Returns:
        bool: True on an exact match or a match up to a "*" segment
    """
    product_parts = product_version.split(".")
    pattern_parts = pattern.split(".")

    for i in range(max(len(product_parts), len(pattern_parts))):
        have = product_parts[i] if i < len(product_parts) else "0"
        want = pattern_parts[i] if i < len(pattern_parts) else "0"
        if want == WILDCARD:
            return True
        if have != want:
            return False
    return True


def check_unique_versions(product_version: str, entries: List[CompatibilityEntry]) -> None:
    seen = set()
    for entry in entries:
        if entry.version in seen:
            message = (f"Update version is not compatible for the product version {product_version}: "
                       f"version '{entry.version}' is listed more than once.")
            log_message(message, "ERROR")
            raise AmbiguousCompatibilityError(message)
        seen.add(entry.version)


def select_compatibility(product_version: str, entries: List[CompatibilityEntry]) -> CompatibilityEntry:
    """
    Pick the compatibility entry that applies to a product version.

    An entry whose version equals the product version wins outright.
    Otherwise every entry whose pattern matches is taken in turn, so the
    last matching entry in list order is the one returned.

    Raises:
        AmbiguousCompatibilityError: two entries carry the same version
        IncompatibleVersionError: no entry matches
    """
    check_unique_versions(product_version, entries)

    for entry in entries:
        if entry.version == product_version:
            return entry

    selected = None
    for entry in entries:
        if compare(product_version, entry.version):
            selected = entry

    if selected is None:
        message = f"Update version is not compatible for the product version {product_version}."
        log_message(message, "DEBUG")
        raise IncompatibleVersionError(message)

    log_message(f"Product version {product_version} matched compatibility entry {selected.version}", "DEBUG")
    return selected


def parse_v1_version_info(version_info: str) -> List[CompatibilityEntry]:
    """
    Decode the VersionInfo JSON array of a V1 package.

    Raises:
        FormatError: the text is not a JSON array of objects
    """
    try:
        data = json.loads(version_info)
    except ValueError as e:
        raise FormatError(f"RPM VersionInfo is not in valid JSON format: {e}") from e

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise FormatError("RPM VersionInfo is not in valid JSON format: expected an array of objects")

    return [CompatibilityEntry.from_v1_dict(item) for item in data]


def get_compatible_version_info(product_version: str, version_info: str) -> CompatibilityEntry:
    """Decode a V1 VersionInfo field and select the entry for a product version."""
    return select_compatibility(product_version, parse_v1_version_info(version_info))
