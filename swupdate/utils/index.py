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

import os
import sys
import logging
from typing import Optional

LOGGER_NAME = "swupdate"

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def log_message(message: str, level: str = "INFO"):
    """
    Log a message through the shared update-manager logger.

    Args:
        message (str): The message to log.
        level (str): Log level name ('DEBUG', 'INFO', 'WARNING', 'ERROR').
    """
    get_logger().log(_LEVELS.get(level, logging.INFO), message)


def setup_logging(command: str, log_dir: Optional[str] = None, debug: bool = False) -> Optional[str]:
    """
    Configure logging for one command invocation.

    Messages go to stdout. When a log directory is given and writable, the
    full session (including DEBUG detail) is also written to
    ``<log_dir>/<command>.log``.

    Args:
        command: Name of the subcommand being run, used for the log file name
        log_dir: Directory for the per-command log file, or None for stdout only
        debug: Also show DEBUG messages on stdout

    Returns:
        str: Path of the log file, or None if only stdout logging is active
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = None
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            log_file = os.path.join(log_dir, f"{command}.log")
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            log_message(f"Unable to write log file in {log_dir}: {e}", "WARNING")
            log_file = None

    log_message("=" * 80, "DEBUG")
    log_message(f"SOFTWARE UPDATE SESSION STARTED: {command}", "DEBUG")
    log_message(f"Command: {' '.join(sys.argv)}", "DEBUG")
    log_message(f"Working Directory: {os.getcwd()}", "DEBUG")
    log_message("=" * 80, "DEBUG")
    return log_file
