#!/usr/bin/env python3
"""Command-line interface for versioner.

This module provides the CLI for producing versioned copies of a module:
- Argument parsing and validation
- Configuration file loading and merging
- Source/destination directory validation
- Logging setup
- Help and version information

Example:
    >>> from versioner.cli import parse_arguments
    >>> args = parse_arguments(['--source', 'android', '--dest', 'out', '--version', 'ABI45_0_0'])
"""

import argparse
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from versioner.core.config import ConfigError, ConfigManager, ConfigSource
from versioner.core.constants import VERSIONER_VERSION, ConfigKey
from versioner.core.logging import Logger, set_global_logger
from versioner.core.validators import ValidationError, validate_config
from versioner.transforms.base import TransformError

DESCRIPTION = "versioner - Produce namespaced, side-by-side copies of library source trees"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If directories or files are unusable
    """
    parser = argparse.ArgumentParser(
        prog="versioner",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Version a module's android sources under ABI45_0_0
  versioner --source expo-updates/android --dest out/expo-updates \\
      --version ABI45_0_0 --module expo-updates --rename expo.modules

  # Use a configuration file with package lists and module overrides
  versioner --config versioning.yaml --source android --dest out

  # Show where each file would go without writing anything
  versioner --config versioning.yaml --source android --dest out --dry-run
        """,
    )

    parser.add_argument(
        "-V",
        "--tool-version",
        action="version",
        version=f"%(prog)s {VERSIONER_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    parser.add_argument(
        "-s",
        "--source",
        metavar="DIR",
        type=str,
        required=True,
        help="Module source root to version (required)",
    )

    parser.add_argument(
        "-d",
        "--dest",
        metavar="DIR",
        type=str,
        required=True,
        help="Destination root for the versioned copy (required)",
    )

    # Versioning options
    version_group = parser.add_argument_group("versioning options")

    version_group.add_argument(
        "-v",
        "--version",
        metavar="TOKEN",
        type=str,
        help="Version token, e.g. ABI45_0_0",
    )

    version_group.add_argument(
        "-m",
        "--module",
        metavar="NAME",
        type=str,
        help="Module name used to select overrides (default: source directory name)",
    )

    version_group.add_argument(
        "--keep",
        metavar="PKG",
        nargs="+",
        default=None,
        help="Packages to keep un-versioned (space-separated)",
    )

    version_group.add_argument(
        "--rename",
        metavar="PKG",
        nargs="+",
        default=None,
        help="Packages to prefix with the version token (space-separated)",
    )

    # Execution options
    run_group = parser.add_argument_group("execution options")

    run_group.add_argument(
        "-j",
        "--workers",
        metavar="N",
        type=int,
        help="Worker threads (default: 1)",
    )

    run_group.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop after the first file that fails",
    )

    run_group.add_argument(
        "--clean",
        action="store_true",
        help="Delete the destination directory before writing",
    )

    run_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the path mapping without writing files",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to this file",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    source_path = Path(args.source)

    if not source_path.exists():
        raise CLIError(f"Source directory does not exist: {args.source}")

    if not source_path.is_dir():
        raise CLIError(f"Source is not a directory: {args.source}")

    dest_path = Path(args.dest)

    if dest_path.exists() and not dest_path.is_dir():
        raise CLIError(f"Destination is not a directory: {args.dest}")

    source_resolved = source_path.resolve()
    dest_resolved = dest_path.resolve()

    if dest_resolved == source_resolved or source_resolved in dest_resolved.parents:
        raise CLIError(f"Destination must not be inside the source tree: {args.dest}")

    # --clean removes the whole destination
    if dest_resolved in source_resolved.parents:
        raise CLIError(f"Source must not be inside the destination tree: {args.source}")

    # A pass must write into a fresh tree
    if dest_path.is_dir() and any(dest_path.iterdir()) and not args.clean and not args.dry_run:
        raise CLIError(
            f"Destination is not empty: {args.dest}\n"
            "Use --clean to rebuild it from scratch"
        )

    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build the ``versioner`` configuration section from command-line arguments.

    Only options given on the command line are included.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration dictionary for ConfigManager
    """
    section: Dict[str, Any] = {}

    if args.version:
        section[ConfigKey.VERSION] = args.version
    if args.module:
        section[ConfigKey.MODULE] = args.module
    if args.keep is not None:
        section[ConfigKey.PACKAGES_TO_KEEP] = list(args.keep)
    if args.rename is not None:
        section[ConfigKey.PACKAGES_TO_RENAME] = list(args.rename)
    if args.workers is not None:
        section[ConfigKey.WORKERS] = args.workers
    if args.fail_fast:
        section[ConfigKey.HALT_ON_ERROR] = True

    logging_config: Dict[str, Any] = {}
    if args.debug:
        logging_config["level"] = "DEBUG"
    if args.log_file:
        logging_config["file"] = args.log_file
    if logging_config:
        section[ConfigKey.LOGGING] = logging_config

    return {ConfigKey.ROOT: section}


def load_configuration(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Merge defaults, the config file, environment and CLI arguments.

    Command-line arguments take precedence over everything else.

    Args:
        args: Parsed arguments namespace

    Returns:
        The merged and validated ``versioner`` section

    Raises:
        CLIError: If the configuration cannot be loaded or is invalid
    """
    try:
        manager = ConfigManager(args.config)
    except ConfigError as e:
        raise CLIError(str(e))

    manager.load_dict(build_config_from_args(args), ConfigSource.CLI_ARGS)
    section = manager.get_section()

    if not section.get(ConfigKey.VERSION):
        raise CLIError("A version token is required (--version or 'version' in the config file)")

    try:
        validate_config(section)
    except ValidationError as e:
        raise CLIError(f"Invalid configuration: {e}")

    return section


def setup_logging(args: argparse.Namespace, config: Dict[str, Any]) -> Logger:
    """
    Setup logging based on arguments and configuration.

    Args:
        args: Parsed arguments namespace
        config: Merged ``versioner`` section

    Returns:
        Configured logger instance, also installed as the global logger
    """
    logging_config = config.get(ConfigKey.LOGGING, {}) or {}
    log_level = "DEBUG" if args.debug else logging_config.get("level", "INFO")
    log_file = args.log_file or logging_config.get("file")

    logger = Logger("versioner", level=log_level)

    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))
        logger.debug(f"Logging to file: {log_file}")

    set_global_logger(logger)
    return logger


def clean_destination(dest: str, logger: Logger) -> None:
    """Remove an existing destination tree so the pass starts fresh."""
    dest_path = Path(dest)
    if dest_path.is_dir():
        logger.info(f"Removing existing destination: {dest}")
        shutil.rmtree(dest_path)


def print_banner(logger: Logger, config: Dict[str, Any]) -> None:
    """
    Print startup banner with version information.

    Args:
        logger: Logger instance
        config: Merged ``versioner`` section
    """
    logger.info("=" * 60)
    logger.info(f"versioner v{VERSIONER_VERSION}")
    logger.info(f"Version token: {config.get(ConfigKey.VERSION)}")
    logger.info("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Parses arguments, loads configuration and hands over to
    ``versioner.main.run_versioner``. The exit status is derived from the
    list of per-file errors.
    """
    try:
        args = parse_arguments(argv)
        config = load_configuration(args)
        logger = setup_logging(args, config)

        print_banner(logger, config)

        if args.clean and not args.dry_run:
            clean_destination(args.dest, logger)

        from versioner.main import run_versioner

        return run_versioner(args, config, logger)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except (ValidationError, TransformError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
