"""Command-line entry point for crudgen.

Usage::

    crudgen [--root DIR] [--config FILE] [--force] <command>

Field data is never taken from flags; every command collects what it needs
interactively.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape

from crudgen import __version__
from crudgen.config import ScaffoldConfig
from crudgen.scaffolder.collector import RichPrompter
from crudgen.scaffolder.models import ScaffoldError
from crudgen.scaffolder.orchestrator import COMMANDS, ScaffoldOrchestrator
from crudgen.utils import console

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

_COMMAND_HELP: dict[str, str] = {
    "init": "Write src/index.js, the shared CRUD controller and the DB config",
    "model": "Create a Mongoose model, then optionally its controller and routes",
    "crud": "Alias of 'model'",
    "entity": "Create a plain entity class plus model, controller and routes",
    "controller": "Create a controller for an existing (or new) model",
    "routes": "Create and register the CRUD router for an entity",
    "views": "Create an HTML CRUD page from an existing model",
    "views-routers": "Create and register the router serving a CRUD page",
    "migration": "Not implemented; prints a notice",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crudgen",
        description="crudgen -- interactive CRUD scaffolding for Express + Mongoose",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  crudgen init\n"
            "  crudgen model\n"
            "  crudgen --root ./my-api --force views\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--root",
        default=None,
        help="Target project directory (default: CRUDGEN_ROOT or the current directory)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a crudgen JSON config (default: <root>/.crudgen.json if present)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing artifacts without asking",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True
    for command in COMMANDS:
        subparsers.add_parser(command, help=_COMMAND_HELP.get(command, ""))
    return parser


def load_config(args: argparse.Namespace) -> ScaffoldConfig:
    """Build the session configuration from parsed CLI arguments."""
    if args.config:
        config = ScaffoldConfig.load(Path(args.config))
        if args.root:
            config = config.model_copy(update={"root": Path(args.root)})
    else:
        config = ScaffoldConfig.discover(Path(args.root) if args.root else None)
    if args.force:
        config = config.model_copy(update={"confirm_overwrite": False})
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``crudgen`` and ``python -m crudgen``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except FileNotFoundError as exc:
        console.print(f"[bold red]Error:[/bold red] Config file not found: {exc.filename}")
        sys.exit(EXIT_ERROR)
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration:\n{escape(str(exc))}")
        sys.exit(EXIT_ERROR)

    orchestrator = ScaffoldOrchestrator(config, RichPrompter())
    try:
        asyncio.run(orchestrator.run(args.command))
    except ScaffoldError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    main()
