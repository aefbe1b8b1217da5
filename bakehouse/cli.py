"""CLI entry point for bakehouse."""

from __future__ import annotations

import argparse
from importlib.metadata import version as pkg_version

from bakehouse.bake import FORMATS
from bakehouse.errors import BakehouseError
from bakehouse.pipeline import run_bake
from bakehouse.resolvers import RESOLVERS
from bakehouse.shell import ConsoleHook, fatal

__version__ = pkg_version("bakehouse")


def cmd_bake(args: argparse.Namespace) -> None:
    """Generate the bake file (and any missing Dockerfiles)."""
    hook = ConsoleHook(verbose=args.verbose)
    try:
        result = run_bake(
            args.workspace,
            output=args.output,
            fmt=args.format,
            ecosystem=args.ecosystem,
            include_root=args.include_root,
            dry_run=args.dry_run,
            emit=hook,
        )
    except BakehouseError as exc:
        fatal(str(exc))

    if args.dry_run:
        print()
        print(result.content, end="")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bakehouse",
        description="Generate a Docker Bake file for a monorepo workspace.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-w",
        "--workspace",
        default=".",
        help="Path to the workspace root. (default: %(default)s)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output path, relative to the workspace root. (default: docker-bake.<format>)",
    )
    parser.add_argument(
        "-f",
        "--format",
        default=None,
        help=f"Output format: {' or '.join(FORMATS)}. (default: hcl, or .bakehouse)",
    )
    parser.add_argument(
        "--ecosystem",
        default=None,
        choices=sorted(RESOLVERS),
        help="Workspace type. Detected from the root when omitted.",
    )
    parser.add_argument(
        "--include-root",
        action="store_true",
        default=None,
        help="Also list the root target in the default group.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the bake file instead of writing anything.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show skipped directories."
    )
    parser.set_defaults(func=cmd_bake)
    return parser


def cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    cli()
