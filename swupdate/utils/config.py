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
Configuration for one update-manager invocation.

Defaults live in the package's index.json. load_config() reads them once,
layers command-line overrides on top and returns an immutable UpdateConfig
that is passed explicitly to every operation.
"""

import os
import json
from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Any, Optional

from .index import log_message

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "index.json")

SUPPORTED_OUTPUT_FORMATS = ("json", "yaml")


@dataclass(frozen=True)
class UpdateConfig:
    """Settings shared by repository, validation and update operations."""
    repository_path: str = "/system/software/repository/"
    install_root: str = "/system/upgrade/repository/"
    library_path: str = "/opt/swupdate/library"
    log_dir: str = "/var/log/swupdate/"
    output_file: str = ""
    output_format: str = "yaml"
    rpm_command: str = "/usr/bin/rpm"
    shell_command: str = "/bin/sh"
    reboot_command: str = "systemctl reboot"
    debug: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides) -> 'UpdateConfig':
        """Return a copy with every non-empty override applied."""
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in overrides.items() if k in known and v not in (None, "")}
        return replace(self, **changes)


def load_root_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the root index.json.

    Returns:
        dict: Parsed configuration, or an empty structure if the file is
        missing or unreadable
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        log_message(f"Configuration file not found at {path}, using defaults", "DEBUG")
        return {"metadata": {}, "config": {}}

    try:
        with open(path, 'r') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        log_message(f"Failed to load configuration from {path}: {e}", "WARNING")
        return {"metadata": {}, "config": {}}


def load_config(config_path: Optional[str] = None, **overrides) -> UpdateConfig:
    """
    Build the configuration for one invocation.

    Args:
        config_path: Alternate index.json to read instead of the packaged one
        **overrides: Values from the command line; None and "" are ignored

    Returns:
        UpdateConfig: The frozen configuration value
    """
    root_config = load_root_config(config_path)
    settings = dict(root_config.get("config", {}))
    settings["debug"] = root_config.get("metadata", {}).get("debug", False)

    config = UpdateConfig().with_overrides(**settings).with_overrides(**overrides)
    if config.output_format not in SUPPORTED_OUTPUT_FORMATS:
        log_message(f"Unsupported output format '{config.output_format}', using yaml", "WARNING")
        config = replace(config, output_format="yaml")
    return config
