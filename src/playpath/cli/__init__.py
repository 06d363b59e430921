"""CLI entry point for playpath.

Provides command-line interface for:
- Validating handler configuration files
- Listing installed providers and the resulting capability index
- Running an open sequence with console tracing
- Displaying version information

Usage:
    playpath validate -c handler.yaml
    playpath providers list
    playpath providers list -c handler.yaml
    playpath debug -c handler.yaml
    playpath version
"""

import argparse
import sys
from typing import List, Optional


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="playpath",
        description="Provider orchestration for media sessions",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a configuration file",
    )
    validate_parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to YAML configuration file",
    )
    validate_parser.add_argument(
        "--check-plugins",
        action="store_true",
        help="Also verify that referenced providers are installed",
    )

    # providers command
    providers_parser = subparsers.add_parser(
        "providers",
        help="Inspect providers",
    )
    providers_subparsers = providers_parser.add_subparsers(
        dest="providers_command",
        help="Provider commands",
    )
    list_parser = providers_subparsers.add_parser(
        "list",
        help="List installed providers",
    )
    list_parser.add_argument(
        "-c", "--config",
        help="Also show the capability index built from this configuration",
    )

    # debug command
    debug_parser = subparsers.add_parser(
        "debug",
        help="Run an open sequence with console tracing",
    )
    debug_parser.add_argument(
        "-c", "--config",
        help="Path to YAML configuration file (default: built-in dummy provider)",
    )
    debug_parser.add_argument(
        "-n", "--items",
        type=int,
        default=1,
        help="Number of item switches after the open (default: 1)",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        from playpath.cli.commands.version import cmd_version
        return cmd_version()

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "validate":
        from playpath.cli.commands.validate import cmd_validate
        return cmd_validate(
            config_path=args.config,
            check_plugins=args.check_plugins,
        )

    elif args.command == "providers":
        if args.providers_command == "list":
            from playpath.cli.commands.providers import cmd_providers_list
            return cmd_providers_list(config_path=args.config)
        else:
            parser.parse_args(["providers", "--help"])
            return 0

    elif args.command == "debug":
        from playpath.cli.commands.debug import cmd_debug
        return cmd_debug(config_path=args.config, items=args.items)

    elif args.command == "version":
        from playpath.cli.commands.version import cmd_version
        return cmd_version()

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
