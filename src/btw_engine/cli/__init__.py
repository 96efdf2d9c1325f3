"""Command-line interface for the BTW injection engine.

Usage:
    btw list
    btw inject <workflow-id> [--target T] [--project P] [--force] [--merge] [--no-backup]
    btw inject --interactive [--target T] [--project P] [--merge] [--no-backup]
    btw eject [<workflow-id>] [--target T] [--project P] [--clean]
    btw status [--target T] [--project P]
    btw validate [--target T] [--project P]
    btw restore [<workflow-id>] [--target T] [--project P]
"""

import argparse
import logging
import sys

from btw_engine.cli.inject import cmd_eject, cmd_inject, cmd_restore
from btw_engine.cli.status import cmd_list, cmd_status, cmd_validate
from btw_engine.errors import BTWError
from btw_engine.injection.engine import InjectionEngine
from btw_engine.paths import default_target
from btw_engine.types import Target
from btw_engine.workflows import WorkflowCatalog

TARGET_CHOICES = [t.value for t in Target]


def _add_project_args(parser: argparse.ArgumentParser, target_default: str | None) -> None:
    parser.add_argument(
        "-t", "--target", default=target_default, choices=TARGET_CHOICES,
        help="AI target (default: $BTW_TARGET or claude)" if target_default else "AI target (default: all)",
    )
    parser.add_argument(
        "-p", "--project", default=None,
        help="Project path (default: current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="btw",
        description="Inject reusable AI agent workflows into project configuration",
    )
    parser.add_argument(
        "--workflows-dir", default=None,
        help="Installed workflows directory (default: $BTW_HOME/workflows)",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("list", help="List installed workflows")

    inj = sub.add_parser("inject", help="Inject a workflow into an AI tool's configuration")
    inj.add_argument("workflow_id", nargs="?", help="Workflow id (optional with --interactive)")
    _add_project_args(inj, default_target())
    inj.add_argument(
        "-i", "--interactive", action="store_true",
        help="Select workflows to inject/remove interactively",
    )
    inj.add_argument(
        "--no-backup", dest="backup", action="store_false",
        help="Skip backing up artifacts that get replaced",
    )
    inj.add_argument(
        "-f", "--force", action="store_true",
        help="Re-inject even if the workflow is already injected",
    )
    inj.add_argument(
        "--merge", action="store_true",
        help="Merge with the existing instructions document",
    )

    ej = sub.add_parser("eject", help="Remove injected workflow artifacts")
    ej.add_argument("workflow_id", nargs="?", help="Workflow id (default: all BTW workflows)")
    _add_project_args(ej, default_target())
    ej.add_argument(
        "--clean", action="store_true",
        help="Also remove the target's config directory if left empty",
    )

    st = sub.add_parser("status", help="Show which workflows are injected")
    _add_project_args(st, None)

    val = sub.add_parser("validate", help="Check injected configuration parses")
    _add_project_args(val, None)

    rs = sub.add_parser("restore", help="Restore artifacts from .btw-backup copies")
    rs.add_argument("workflow_id", nargs="?", help="Only restore this workflow's backups")
    _add_project_args(rs, default_target())

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    dispatch = {
        "list": cmd_list,
        "inject": cmd_inject,
        "eject": cmd_eject,
        "status": cmd_status,
        "validate": cmd_validate,
        "restore": cmd_restore,
    }

    engine = InjectionEngine()
    catalog = WorkflowCatalog(args.workflows_dir)
    try:
        return dispatch[args.command](args, engine, catalog)
    except BTWError as exc:
        print(f"ERROR [{exc.code.value}]: {exc.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
