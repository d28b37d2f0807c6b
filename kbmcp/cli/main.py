"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from kbmcp import __version__
from kbmcp.errors import ConfigurationError
from kbmcp.log import configure_logging
from kbmcp.settings import load_settings
from kbmcp.sources import ConfigPaths

from .commands import COMMANDS


def build_parser() -> argparse.ArgumentParser:
    """Construct argument parser for CLI commands."""
    parser = argparse.ArgumentParser(
        prog="kbmcp",
        description="Role-aware knowledge-base server for AI assistants",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings",
        help="path to JSON/TOML settings",
    )
    parser.add_argument(
        "--config-dir",
        help="directory holding kb-map.md, kb-guide.md and core-docs.json",
    )
    parser.add_argument("--debug", action="store_true", help="log debug output to the console")
    sub = parser.add_subparsers(dest="command", required=True)
    for name, cmd in COMMANDS.items():
        p = sub.add_parser(name, help=cmd.help)
        cmd.add_arguments(p)
        p.set_defaults(func=cmd.func)
    return parser


def _config_paths(args: argparse.Namespace) -> ConfigPaths:
    paths = ConfigPaths.from_env()
    config_dir = Path(args.config_dir).expanduser() if args.config_dir else paths.config_dir
    explicit = Path(args.settings).expanduser() if args.settings else paths.explicit_config
    return ConfigPaths(config_dir=config_dir, explicit_config=explicit)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.WARNING)
    args.config_paths = _config_paths(args)
    try:
        args.app_settings = load_settings(args.config_paths)
    except (ConfigurationError, ValueError) as exc:
        sys.stderr.write(f"invalid configuration: {exc}\n")
        return 2
    status = args.func(args)
    return int(status or 0)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
