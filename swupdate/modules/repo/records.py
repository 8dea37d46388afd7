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
Package records built from parsed RPM metadata.

Two metadata layouts are in circulation:

- V1 packages keep everything in flat fields. Compatibility is a JSON array
  in the "VersionInfo" field.
- V2 packages carry an "ASUM RPM Format Version" field and put a structured
  document (JSON or YAML) in the "RPM Info" field, including a
  "compatibility-info" list with per-stage details.

build_record() picks the layout from the marker field and returns a
PackageRecordV1 or PackageRecordV2. Both expose name, version, release,
type and matched_version.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple, Union

import yaml

from swupdate.utils.index import log_message
from swupdate.utils.errors import UpdateManagerError, FormatError
from swupdate.modules.validate.version import (
    CompatibilityEntry,
    Estimate,
    StageInfo,
    select_compatibility,
    get_compatible_version_info,
)

# Marker field embedded in V2 packages. Some tooling prints it without the
# vendor prefix; either spelling selects the V2 layout.
FORMAT_VERSION_FIELD = "ASUM RPM Format Version"
FORMAT_VERSION_FIELDS = (FORMAT_VERSION_FIELD, "RPM Format Version")

V1_VERSION_INFO_FIELD = "VersionInfo"
V2_RPM_INFO_FIELD = "RPM Info"
V2_COMPATIBILITY_KEY = "compatibility-info"

# Accepted "Build Date" layouts, tried in order. rpm prints the first on
# most systems; some emit the ANSI C layout instead.
BUILD_DATE_LAYOUTS = (
    "%a %d %b %Y %I:%M:%S %p %Z",
    "%a %b %d %H:%M:%S %Y",
)


def parse_build_date(raw_date: str) -> Optional[datetime]:
    """
    Parse an RPM build date against BUILD_DATE_LAYOUTS.

    The trailing time zone abbreviation of the first layout (PDT, IST, ...)
    is dropped before parsing since strptime only knows a handful of zone
    names; the returned datetime is naive.

    Returns:
        datetime or None if no layout matches
    """
    text = raw_date.strip()
    for layout in BUILD_DATE_LAYOUTS:
        candidate = text
        if layout.endswith(" %Z"):
            candidate, _, zone = text.rpartition(" ")
            layout = layout[:-len(" %Z")]
            if not zone.isalpha():
                continue
        try:
            return datetime.strptime(candidate, layout)
        except ValueError:
            continue

    log_message(f"Failed to parse date: {raw_date}", "WARNING")
    return None


@dataclass(frozen=True)
class PackageRecordV1:
    """Listing details of a V1 package."""
    name: str
    file_name: str
    description: str = ""
    summary: str = ""
    type: str = ""
    url: str = ""
    version: str = ""
    estimate: Estimate = field(default_factory=Estimate)
    reboot: str = "n/a"
    matched_version: str = ""

    schema = "v1"

    @property
    def release(self) -> str:
        # V1 metadata has no release number.
        return ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "description": self.description,
            "estimate": self.estimate.to_dict(),
            "filename": self.file_name,
            "name": self.name,
            "reboot": self.reboot,
            "summary": self.summary,
            "type": self.type,
            "url": self.url,
            "version": self.version,
        }
        if self.matched_version:
            data["matched-version"] = self.matched_version
        return data


@dataclass(frozen=True)
class PackageInfo:
    """Decoded "RPM Info" document of a V2 package."""
    description: Tuple[str, ...] = ()
    type: str = ""
    url: str = ""
    compatibility: Tuple[CompatibilityEntry, ...] = ()

    @classmethod
    def from_document(cls, document: Any) -> 'PackageInfo':
        if document is None:
            return cls()
        if not isinstance(document, dict):
            raise FormatError("RPM Info is not a mapping")

        description = _lookup(document, "description") or []
        if isinstance(description, str):
            description = [description]

        entries = document.get(V2_COMPATIBILITY_KEY) or []
        if not isinstance(entries, list):
            raise FormatError(f"RPM Info '{V2_COMPATIBILITY_KEY}' is not a list")

        return cls(
            description=tuple(str(line) for line in description),
            type=str(_lookup(document, "type") or ""),
            url=str(_lookup(document, "url") or ""),
            compatibility=tuple(
                CompatibilityEntry.from_v2_dict(entry) for entry in entries if isinstance(entry, dict)
            ),
        )


def _lookup(document: Dict[str, Any], key: str) -> Any:
    """Fetch a key written in lower case, Title case or upper case."""
    for candidate in (key, key.title(), key.upper()):
        if candidate in document:
            return document[candidate]
    return None


@dataclass(frozen=True)
class PackageRecordV2:
    """Listing details of a V2 package."""
    name: str
    file_name: str
    version: str = ""
    release: str = ""
    url: str = ""
    info: PackageInfo = field(default_factory=PackageInfo)
    build_date: Optional[datetime] = None
    matched_version: str = ""
    install: StageInfo = field(default_factory=StageInfo)
    rollback: StageInfo = field(default_factory=StageInfo)
    commit: StageInfo = field(default_factory=StageInfo)

    schema = "v2"

    @property
    def type(self) -> str:
        return self.info.type

    @property
    def description(self) -> List[str]:
        return list(self.info.description)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "filename": self.file_name,
            "description": self.description,
            "type": self.type,
            "url": self.url or self.info.url,
            "version": self.version,
            "release": self.release,
        }
        if self.build_date is not None:
            data["build-date"] = self.build_date.isoformat()
        if self.matched_version:
            data["matched-version"] = self.matched_version
            data["install"] = self.install.to_dict()
            data["rollback"] = self.rollback.to_dict()
            data["commit"] = self.commit.to_dict()
        return data


PackageRecord = Union[PackageRecordV1, PackageRecordV2]


def format_version(fields: Dict[str, str]) -> Optional[str]:
    for marker in FORMAT_VERSION_FIELDS:
        if marker in fields:
            return fields[marker]
    return None


def is_v2(fields: Dict[str, str]) -> bool:
    return format_version(fields) is not None


def build_v1_record(fields: Dict[str, str], file_name: str, product_version: str = "") -> PackageRecordV1:
    """
    Build a V1 record.

    With a product version, the VersionInfo matrix decides reboot and
    estimate. Packages that are not (or no longer) compatible still get a
    record with the defaults, so listings keep working for updates that are
    already applied.
    """
    reboot = "n/a"
    estimate = Estimate()
    matched_version = ""

    if product_version:
        try:
            entry = get_compatible_version_info(product_version, fields.get(V1_VERSION_INFO_FIELD, ""))
            reboot = entry.reboot
            estimate = entry.estimate
            matched_version = entry.version
        except UpdateManagerError as e:
            log_message(f"No compatibility details for {file_name}: {e}", "WARNING")

    return PackageRecordV1(
        name=fields.get("Name") or file_name,
        file_name=file_name,
        description=fields.get("Description", ""),
        summary=fields.get("Summary", ""),
        type=fields.get("Type", ""),
        url=fields.get("URL", ""),
        version=fields.get("Version", ""),
        estimate=estimate,
        reboot=reboot,
        matched_version=matched_version,
    )


def decode_package_info(rpm_info: str) -> PackageInfo:
    """
    Decode the "RPM Info" field of a V2 package.

    Raises:
        FormatError: the field is not a valid JSON/YAML mapping
    """
    try:
        document = yaml.safe_load(rpm_info) if rpm_info else None
    except yaml.YAMLError as e:
        raise FormatError(f"RPM Info is not a valid document: {e}") from e
    return PackageInfo.from_document(document)


def build_v2_record(fields: Dict[str, str], file_name: str, product_version: str = "") -> PackageRecordV2:
    """Build a V2 record, resolving stage details for a product version if one is given."""
    log_message(f"{FORMAT_VERSION_FIELD}: {format_version(fields)}", "DEBUG")

    try:
        info = decode_package_info(fields.get(V2_RPM_INFO_FIELD, ""))
    except FormatError as e:
        log_message(f"Failed to decode {V2_RPM_INFO_FIELD} of {file_name}: {e}", "WARNING")
        info = PackageInfo()

    build_date = None
    if "Build Date" in fields:
        build_date = parse_build_date(fields["Build Date"])

    matched = None
    if product_version:
        try:
            matched = select_compatibility(product_version, list(info.compatibility))
        except UpdateManagerError as e:
            log_message(f"No compatibility details for {file_name}: {e}", "WARNING")

    return PackageRecordV2(
        name=fields.get("Name", ""),
        file_name=file_name,
        version=fields.get("Version", ""),
        release=fields.get("Release", ""),
        url=fields.get("URL", ""),
        info=info,
        build_date=build_date,
        matched_version=matched.version if matched else "",
        install=matched.install if matched else StageInfo(),
        rollback=matched.rollback if matched else StageInfo(),
        commit=matched.commit if matched else StageInfo(),
    )


def build_record(fields: Dict[str, str], file_name: str, product_version: str = "") -> PackageRecord:
    """
    Build the package record for a parsed metadata block.

    Args:
        fields: Field map from parse_metadata()
        file_name: Base name of the package file
        product_version: Running product version to resolve compatibility
            against, or "" to skip compatibility resolution

    Returns:
        PackageRecordV2 if the format marker is present, else PackageRecordV1
    """
    if is_v2(fields):
        return build_v2_record(fields, file_name, product_version)
    return build_v1_record(fields, file_name, product_version)
