"""
CLI Interface Module

Provides the command-line interface for the record hierarchy system: showing
a record's hierarchy in the terminal, exporting it as JSON for the rendering
layer, validating the configuration, and loading sample records into the
SQLite store.
"""

import argparse
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv

from .. import __version__
from ..database.database_manager import DatabaseManager
from ..export.json_exporter import JSONExporter
from ..export.tree_renderer import TreeRenderer
from ..orchestration.hierarchy_service import HierarchyService
from ..utils.config_loader import DEFAULT_CONFIG_PATH, Config
from ..utils.error_handlers import ConfigurationError, HierarchyError


logger = logging.getLogger(__name__)

# Constants
CONFIG_ENV_VAR = "RECORD_HIERARCHY_CONFIG"
SEPARATOR_WIDTH = 60
EXIT_OK = 0
EXIT_HIERARCHY_ERROR = 1
EXIT_CONFIG_ERROR = 2


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging for the CLI application.

    Application output goes to stdout, logs go to stderr.

    Args:
        log_level: Logging level as string (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


@contextmanager
def get_hierarchy_service(config_path: str):
    """Context manager wiring configuration, store, and service together.

    Args:
        config_path: Path to system configuration file.

    Yields:
        tuple: (SystemConfig, HierarchyService) objects.

    Raises:
        ConfigurationError: If configuration cannot be loaded.
        RecordStoreError: If the database cannot be opened.
    """
    db = None
    try:
        config = load_config(config_path)
        db = DatabaseManager(config.database["path"])
        service = HierarchyService(
            db, config.build_registry(), config.build_hierarchy_config()
        )
        yield config, service
    finally:
        if db is not None:
            db.close()


def load_config(config_path: str):
    """Load configuration, converting loader failures to ConfigurationError."""
    try:
        return Config.load(config_path)
    except (FileNotFoundError, KeyError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to load configuration {config_path}: {e}",
            original_error=e,
        ) from e


def handle_error(context: str, error: Exception) -> int:
    """Centralized error handling for commands.

    Args:
        context: Description of the operation that failed.
        error: Exception that was raised.

    Returns:
        Exit code for the error.
    """
    if isinstance(error, ConfigurationError):
        logger.error(f"{context}: {error}")
        return EXIT_CONFIG_ERROR
    if isinstance(error, (HierarchyError, FileNotFoundError, ValueError)):
        logger.error(f"{context}: {error}")
    else:
        logger.error(f"{context}: {error}", exc_info=True)
    return EXIT_HIERARCHY_ERROR


def main(argv: Optional[List[str]] = None) -> int:
    """Execute the main CLI entry point.

    Returns:
        Exit code: 0 for success, 1 for hierarchy errors, 2 for
        configuration errors.

    Example:
        $ record-hierarchy show --id 001A --type Account --depth 2
        $ record-hierarchy export --id 001A --type Account -o tree.json
    """
    load_dotenv()

    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Record Hierarchy v{__version__}")
        return EXIT_OK

    setup_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        return EXIT_HIERARCHY_ERROR

    command_map = {
        "show": command_show,
        "export": command_export,
        "validate-config": command_validate_config,
        "load-fixture": command_load_fixture,
    }

    try:
        return command_map[args.command](args)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 130


def command_show(args: argparse.Namespace) -> int:
    """Print a record's hierarchy as an indented tree."""
    try:
        with get_hierarchy_service(args.config) as (_, service):
            tree = fetch_tree(service, args)
            print(TreeRenderer().render(tree))
            return EXIT_OK
    except Exception as e:
        return handle_error("Show failed", e)


def command_export(args: argparse.Namespace) -> int:
    """Write a record's hierarchy to a JSON file."""
    try:
        with get_hierarchy_service(args.config) as (_, service):
            tree = fetch_tree(service, args)
            exporter = JSONExporter(
                json_format="compact" if args.compact else "pretty",
                grouped=not args.flat,
            )
            exporter.export_to_file(tree, Path(args.output))
            print(f"Exported to: {args.output}")
            return EXIT_OK
    except Exception as e:
        return handle_error("Export failed", e)


def command_validate_config(args: argparse.Namespace) -> int:
    """Validate the configuration file and print registry warnings."""
    logger.info(f"Validating configuration: {args.config}")

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        return handle_error("Configuration validation failed", e)

    errors = Config.validate(config)
    warnings: List[str] = []
    if not errors:
        warnings = config.build_registry().validate()

    print("=" * SEPARATOR_WIDTH)
    print("CONFIGURATION VALIDATION")
    print("=" * SEPARATOR_WIDTH)
    for message in errors:
        print(f"ERROR: {message}")
    for message in warnings:
        print(f"WARNING: {message}")
    if not errors and not warnings:
        print("Configuration is valid")
    print("=" * SEPARATOR_WIDTH)

    return EXIT_CONFIG_ERROR if errors else EXIT_OK


def command_load_fixture(args: argparse.Namespace) -> int:
    """Load a YAML fixture of records into the configured SQLite store."""
    try:
        config = load_config(args.config)
        fixture_path = Path(args.fixture)
        if not fixture_path.exists():
            raise FileNotFoundError(f"Path does not exist: {fixture_path}")

        with open(fixture_path, "r", encoding="utf-8") as f:
            fixture = yaml.safe_load(f) or {}
        if not isinstance(fixture, dict):
            raise ValueError("Fixture file must contain a mapping of entity types")

        with DatabaseManager(config.database["path"]) as db:
            count = db.load_fixture(fixture)
        print(f"Loaded {count} record(s) into {config.database['path']}")
        return EXIT_OK
    except Exception as e:
        return handle_error("Fixture load failed", e)


def fetch_tree(service: HierarchyService, args: argparse.Namespace):
    if args.flat:
        return service.get_flat_hierarchy_data(args.id, args.type, args.depth)
    return service.get_hierarchy_data(args.id, args.type, args.depth)


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--id", required=True, help="Root record id")
    parser.add_argument("--type", required=True, help="Root entity type")
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Levels to expand below the root (default: from config)",
    )
    parser.add_argument(
        "--flat",
        action="store_true",
        help="List related records directly, without group nodes",
    )


def setup_argument_parser() -> argparse.ArgumentParser:
    """Configure the argument parser with all CLI commands and options.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        description="Record Hierarchy - CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show an account's hierarchy two levels deep
  %(prog)s show --id 001A --type Account --depth 2

  # Export it as JSON for the diagram component
  %(prog)s export --id 001A --type Account --output tree.json

  # Load sample records into the configured database
  %(prog)s load-fixture config/sample_records.yaml
        """,
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "--config",
        default=os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH),
        help=f"Path to configuration file (default: %(default)s, "
        f"or ${CONFIG_ENV_VAR})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: %(default)s)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    show_parser = subparsers.add_parser(
        "show",
        help="Print a record hierarchy",
        description="Print the hierarchy below a record as an indented tree.",
    )
    _add_request_arguments(show_parser)

    export_parser = subparsers.add_parser(
        "export",
        help="Export a record hierarchy as JSON",
        description="Write the hierarchy below a record to a JSON file.",
    )
    _add_request_arguments(export_parser)
    export_parser.add_argument(
        "--output", "-o", required=True, help="Output JSON file path"
    )
    export_parser.add_argument(
        "--compact", action="store_true", help="Write compact JSON"
    )

    subparsers.add_parser(
        "validate-config",
        help="Validate configuration",
        description="Check the hierarchy settings and relationship tables.",
    )

    fixture_parser = subparsers.add_parser(
        "load-fixture",
        help="Load records into the database",
        description="Insert records from a YAML file (entity type -> rows).",
    )
    fixture_parser.add_argument("fixture", help="Path to YAML fixture file")

    return parser


if __name__ == "__main__":
    sys.exit(main())
