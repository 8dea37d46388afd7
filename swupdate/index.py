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
Software Update Manager command line.

    swupdate install|commit|reboot|rollback [--filename F --type T] ...
    swupdate repo list|add|remove ...
    swupdate validate --version|--signature --rpm P ...
    swupdate version
"""

import sys
import argparse
from typing import List, Optional

from swupdate import __version__
from swupdate.utils.index import log_message, setup_logging
from swupdate.utils.config import load_config, UpdateConfig, SUPPORTED_OUTPUT_FORMATS
from swupdate.utils.errors import UpdateManagerError, SubprocessFailure
from swupdate.utils.executor import CommandExecutor
from swupdate.utils.output import OutputSink
from swupdate.modules.rpm import RPMManager
from swupdate.modules.repo import RepositoryIndex
from swupdate.modules.validate.index import check_compatibility, validate_signature
from swupdate.modules.update import WorkflowOrchestrator, OPERATIONS


def _add_common_args(parser: argparse.ArgumentParser):
    parser.add_argument("--config", default=None,
                        help="Alternate index.json to read settings from")
    parser.add_argument("--log-dir", default=None,
                        help="Directory for the per-command log file")
    parser.add_argument("--debug", action="store_true", default=None,
                        help="Show debug messages")


def _add_output_args(parser: argparse.ArgumentParser):
    parser.add_argument("--output-file", default=None,
                        help="Write results to this file instead of stdout")
    parser.add_argument("--output-format", default=None, choices=SUPPORTED_OUTPUT_FORMATS,
                        help="Format of the results")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="swupdate", description="Software Update Manager")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    for operation in OPERATIONS:
        workflow = subparsers.add_parser(operation, help=f"Run the {operation} stage plugins of an update")
        workflow.add_argument("--filename", default="",
                              help="Run the packaged action script of this repository software instead")
        workflow.add_argument("--type", default="", help="Software type of --filename")
        workflow.add_argument("--repo", default=None, help="Software repository path")
        workflow.add_argument("--library", default=None, help="Stage plugin library path")
        _add_output_args(workflow)
        _add_common_args(workflow)

    repo = subparsers.add_parser("repo", help="Manage the software repository")
    repo_commands = repo.add_subparsers(dest="repo_command", metavar="ACTION")
    repo_commands.required = True

    repo_list = repo_commands.add_parser("list", help="List repository software")
    repo_list.add_argument("--filename", default="", help="Only list this software file")
    repo_list.add_argument("--type", default="", help="Only list this software type")
    repo_list.add_argument("--repo", default=None, help="Software repository path")
    repo_list.add_argument("--product-version", default="",
                           help="Resolve compatibility details for this product version")
    _add_output_args(repo_list)
    _add_common_args(repo_list)

    repo_add = repo_commands.add_parser("add", help="Move a software file into the repository")
    repo_add.add_argument("--filepath", required=True, help="Software file to add")
    repo_add.add_argument("--repo", default=None, help="Software repository path")
    repo_add.add_argument("--product-version", default="", help="Running product version")
    _add_common_args(repo_add)

    repo_remove = repo_commands.add_parser("remove", help="Remove software from the repository")
    repo_remove.add_argument("--filename", default="", help="Software file to remove")
    repo_remove.add_argument("--type", default="", help="Software type to remove from")
    repo_remove.add_argument("--repo", default=None, help="Software repository path")
    _add_common_args(repo_remove)

    validate = subparsers.add_parser("validate", help="Validate a software file")
    checks = validate.add_mutually_exclusive_group(required=True)
    checks.add_argument("--version", action="store_true",
                        help="Check compatibility with the product version")
    checks.add_argument("--signature", action="store_true", help="Verify the package signature")
    validate.add_argument("--rpm", required=True, help="Software file to validate")
    validate.add_argument("--product-version", default="", help="Running product version")
    _add_common_args(validate)

    subparsers.add_parser("version", help="Show the tool version")
    return parser


def _load(args: argparse.Namespace) -> UpdateConfig:
    return load_config(
        getattr(args, "config", None),
        repository_path=getattr(args, "repo", None),
        library_path=getattr(args, "library", None),
        log_dir=getattr(args, "log_dir", None),
        output_file=getattr(args, "output_file", None),
        output_format=getattr(args, "output_format", None),
        debug=getattr(args, "debug", None),
    )


def run_workflow(args: argparse.Namespace, config: UpdateConfig, executor: CommandExecutor) -> int:
    orchestrator = WorkflowOrchestrator(config, executor=executor)

    if args.filename:
        orchestrator.run_artifact_action(args.command, args.filename, args.type, config.repository_path)
        return 0

    status = orchestrator.run(args.command)
    OutputSink(config.output_file, config.output_format).write(status)
    return 0 if status.succeeded else 1


def run_repo(args: argparse.Namespace, config: UpdateConfig, executor: CommandExecutor) -> int:
    repository = RepositoryIndex(config.repository_path, RPMManager(executor, config.rpm_command))

    if args.repo_command == "list":
        records = repository.list(args.filename, args.type, args.product_version)
        OutputSink(config.output_file, config.output_format).write(records)
    elif args.repo_command == "add":
        repository.add(args.filepath, args.product_version)
    elif args.repo_command == "remove":
        repository.remove(args.filename, args.type)
    return 0


def run_validate(args: argparse.Namespace, config: UpdateConfig, executor: CommandExecutor) -> int:
    rpm_manager = RPMManager(executor, config.rpm_command)
    if args.version:
        check_compatibility(args.product_version, args.rpm, rpm_manager)
    else:
        validate_signature(args.rpm, rpm_manager)
    return 0


COMMAND_HANDLERS = {
    "repo": run_repo,
    "validate": run_validate,
}


def main(argv: Optional[List[str]] = None, executor: Optional[CommandExecutor] = None):
    """
    Main entry point for the software update manager.

    Exits 0 on success, 1 on any failure and 130 when interrupted.
    """
    args = build_parser().parse_args(argv)

    if args.command == "version":
        print(f"swupdate version {__version__}")
        sys.exit(0)

    try:
        config = _load(args)
        setup_logging(args.command, config.log_dir, config.debug)
        log_message(f"Configuration: {config.to_dict()}", "DEBUG")

        handler = COMMAND_HANDLERS.get(args.command, run_workflow)
        sys.exit(handler(args, config, executor or CommandExecutor()))

    except KeyboardInterrupt:
        log_message("Update process interrupted by user", "WARNING")
        sys.exit(130)
    except SubprocessFailure as e:
        log_message(str(e), "ERROR")
        if e.output.strip():
            log_message(e.output.strip(), "ERROR")
        sys.exit(1)
    except UpdateManagerError as e:
        log_message(str(e), "ERROR")
        sys.exit(1)


if __name__ == "__main__":
    main()
