#!/usr/bin/env python3
"""Command-line interface for modresolve.

Subcommands:
    - modresolve resolve: Print the rewritten specifier for an import
    - modresolve config: Print the normalized options that apply to a file

Options come from ``-c CONFIG`` or the nearest ``.modresolverc`` /
``pyproject.toml`` above the file, and command-line flags override them.

Example:
    $ modresolve resolve @utils/helper pages/index.js --alias @utils=./src/utils
    ../src/utils/helper
    $ modresolve config src/app.js -c .modresolverc
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict

from . import __version__
from .colors import get_colors
from .config import ConfigError, find_config, load_options
from .options import normalize_options
from .resolve_path import resolve_path

EXIT_UNRESOLVED = 1
EXIT_CONFIG_ERROR = 2


def add_options_arguments(parser: argparse.ArgumentParser):
    """Add the flags shared by every subcommand."""
    parser.add_argument("-c", "--config", help="Config file (default: nearest .modresolverc)")
    parser.add_argument(
        "-r",
        "--root",
        action="append",
        help="Root directory to search (repeatable, replaces configured roots)",
    )
    parser.add_argument(
        "-a",
        "--alias",
        action="append",
        metavar="KEY=VALUE",
        help="Alias entry, tried after configured aliases (repeatable)",
    )
    parser.add_argument("-e", "--extensions", help="Comma-separated extensions, e.g. .js,.ts")
    parser.add_argument("--cwd", help="Directory used for relative-path computation")
    parser.add_argument(
        "--loglevel",
        choices=["silent", "error", "warn", "info", "debug"],
        help="Resolver log level (silent hides unresolved-alias warnings)",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def build_options(args) -> Dict[str, Any]:
    """Merge the config file with command-line overrides.

    Raises:
        ConfigError: If the config file or an ``--alias`` flag is invalid.
    """
    if args.config:
        options = load_options(args.config)
    else:
        found = find_config(os.path.dirname(os.path.abspath(args.file)))
        options = load_options(str(found)) if found else {}

    if args.root:
        options["root"] = args.root
    if args.extensions:
        options["extensions"] = [ext.strip() for ext in args.extensions.split(",") if ext.strip()]
    if args.cwd:
        options["cwd"] = args.cwd
    if args.loglevel:
        options["loglevel"] = args.loglevel

    if args.alias:
        extra = {}
        for item in args.alias:
            key, sep, value = item.partition("=")
            if not sep or not key:
                raise ConfigError(f"Alias must look like KEY=VALUE, got {item!r}")
            extra[key] = value
        alias = options.get("alias") or []
        options["alias"] = (alias if isinstance(alias, list) else [alias]) + [extra]

    return options


def run_resolve(args) -> int:
    c = get_colors(no_color=args.no_color)
    try:
        options = build_options(args)
        resolved = resolve_path(args.specifier, args.file, options)
    except ConfigError as e:
        print(c.error(f"Error: {e}"), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.json:
        print(json.dumps({"specifier": args.specifier, "file": args.file, "resolved": resolved}))
    elif resolved is None:
        print(c.warning(f"No rewrite for {args.specifier!r} in {c.cyan(args.file)}"), file=sys.stderr)
    else:
        print(c.success(resolved))

    return 0 if resolved is not None else EXIT_UNRESOLVED


def run_config(args) -> int:
    c = get_colors(no_color=args.no_color)
    try:
        options = normalize_options(args.file, build_options(args))
    except ConfigError as e:
        print(c.error(f"Error: {e}"), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print(json.dumps(options.to_dict(), indent=2))
    return 0


def main(argv=None) -> int:
    """Entry point for the ``modresolve`` command.

    Usage:
        modresolve resolve SPECIFIER FILE [-c CONFIG] [-r ROOT...] [-a KEY=VALUE...]
        modresolve config FILE [-c CONFIG]
    """
    parser = argparse.ArgumentParser(
        prog="modresolve",
        description="Rewrite aliased and root-relative import specifiers",
        epilog="Run 'modresolve <command> --help' for more information on a command.",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the rewritten specifier for an import",
        description="Resolve SPECIFIER as imported from FILE.",
        epilog="Example: modresolve resolve @utils/helper pages/index.js",
    )
    resolve_parser.add_argument("specifier", help="Import specifier as written")
    resolve_parser.add_argument("file", help="File containing the import")
    resolve_parser.add_argument("--json", action="store_true", help="Output a JSON object")
    add_options_arguments(resolve_parser)

    config_parser = subparsers.add_parser(
        "config",
        help="Show the normalized options for a file",
        description="Print the options that apply to FILE as JSON.",
        epilog="Example: modresolve config src/app.js",
    )
    config_parser.add_argument("file", help="File the options are scoped to")
    add_options_arguments(config_parser)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "resolve":
        return run_resolve(args)
    return run_config(args)


if __name__ == "__main__":
    sys.exit(main())
