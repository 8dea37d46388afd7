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
Result writer for listings and workflow status.
"""

import os
import sys
import json
from typing import Any

import yaml

from .index import log_message
from .config import SUPPORTED_OUTPUT_FORMATS


def _plain(value: Any) -> Any:
    """Convert objects exposing to_dict() (and lists of them) to plain data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class OutputSink:
    """Serializes results as JSON or YAML to a file, or to stdout when no file is set."""

    def __init__(self, file_path: str = "", output_format: str = "yaml"):
        if output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}")
        self.file_path = file_path
        self.output_format = output_format

    def render(self, value: Any) -> str:
        data = _plain(value)
        if self.output_format == "json":
            return json.dumps(data, indent=4) + "\n"
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    def write(self, value: Any) -> None:
        text = self.render(value)
        if not self.file_path:
            sys.stdout.write(text)
            return

        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.file_path, 'w') as f:
            f.write(text)
        log_message(f"Results written to {self.file_path}", "DEBUG")
