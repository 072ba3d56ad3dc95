"""CLI entry point for sharptask."""

import argparse
from pathlib import Path

from pydantic import ValidationError

from . import __version__
from .cli.output import error, warning
from .config import Settings
from .errors import ConfigError
from .logging import setup_logging
from .services import ConfigService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="sharptask",
        description="Sync Obsidian markdown tasks with Taskwarrior",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Obsidian vault to sync (default: vault_path from the config file)",
    )
    target.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Sync a single note instead of a whole vault",
    )
    parser.add_argument(
        "--task-db",
        type=Path,
        default=None,
        help="Taskwarrior data directory (default: ~/.task)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: ~/.sharptask/config.yml)",
    )
    parser.add_argument(
        "--tz",
        default=None,
        help="IANA timezone for task dates (default: TZ or UTC)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "command",
        choices=["md-to-tc", "tc-to-md"],
        help="md-to-tc: markdown to Taskwarrior; tc-to-md: Taskwarrior to markdown",
    )
    return parser.parse_args(argv)


def build_settings(
    args: argparse.Namespace, config_service: ConfigService | None = None
) -> Settings:
    """Merge CLI flags over config file values over the environment.

    Raises:
        ConfigError: If a value is invalid (e.g. an unknown timezone)
    """
    if config_service is None:
        config_service = ConfigService(args.config)
    config = config_service.get_config()
    if config_service.has_config_error:
        warning(f"{config_service.config_error}; using defaults")

    settings_kwargs: dict = config.overrides()
    if args.config:
        settings_kwargs["config_path"] = args.config
    if args.vault:
        settings_kwargs["vault_path"] = args.vault
    if args.file:
        settings_kwargs["file_path"] = args.file
    if args.task_db:
        settings_kwargs["task_path"] = args.task_db
    if args.tz:
        settings_kwargs["timezone"] = args.tz
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    try:
        return Settings(**settings_kwargs)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in problem['loc'])}: {problem['msg']}"
            for problem in e.errors()
        )
        raise ConfigError(f"Invalid settings: {problems}") from e


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    config_service = ConfigService(args.config)

    try:
        settings = build_settings(args, config_service)
    except ConfigError as e:
        error(str(e))
        raise SystemExit(1) from None

    setup_logging(settings.verbose, settings.log_file, command=args.command)
    config_service.log_status()

    # Import here to keep --help fast
    from .cli.sync import run_sync

    exit_code = run_sync(settings, args.command)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
