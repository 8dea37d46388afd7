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
Parser for package query output.

`rpm -q -p --info` prints one "Key : value" pair per line, except that some
values (Description in particular) run on over the following lines:

    Name        : platformx-upgrade
    Build Date  : Wed 25 Mar 2020 02:42:20 PM PDT
    Description :
    Platform Upgrade Package. Will reboot system.
    Type:Upgrade

parse_metadata() turns such a block into a flat field map.
"""

import re
from typing import Dict

# "<key name> :" at the start of a line; keys may contain single words
# separated by whitespace, e.g. "Build Date".
KEY_LINE_PATTERN = re.compile(r'^\w+(\s+\w+)*\s*:')


def is_key_line(line: str) -> bool:
    return KEY_LINE_PATTERN.match(line) is not None


def parse_metadata(raw_text: str) -> Dict[str, str]:
    """
    Parse a package metadata block into a field map.

    Key lines set (or reset) a field's value. Every other line is trimmed
    and appended, without a separator, to the most recent key's value.
    Text before the first key line has nowhere to go and is dropped.

    Args:
        raw_text: Metadata text as printed by the package query tool

    Returns:
        Dict[str, str]: Field name to value
    """
    fields: Dict[str, str] = {}
    key = None

    for line in raw_text.split("\n"):
        if is_key_line(line):
            name, _, value = line.partition(":")
            key = name.strip()
            fields[key] = value.strip()
        elif key is not None:
            fields[key] += line.strip()

    return fields
