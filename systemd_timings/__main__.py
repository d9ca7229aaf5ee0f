"""
Entry point for Systemd Timings.

Usage:
    python -m systemd_timings /path/to/config.conf
    python -m systemd_timings --once
    python -m systemd_timings --help
"""

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .app import Application, load_app_config, run_app
from .config.loader import ConfigError, ConfigLoader
from .const import APP_DESCRIPTION, DEFAULT_CONFIG_PATH, SAMPLE_CONFIG
from .logging import LogConfig, get_logger, setup_logging


logger = get_logger("main")


def validate_config(config_path: str) -> int:
    """Validate configuration file and print warnings."""
    try:
        loader = ConfigLoader()
        config = loader.load_file(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    warnings = loader.validate(config)
    if warnings:
        print(f"Configuration warnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")

    print("\nConfiguration summary:")
    print(f"  Unit patterns: {', '.join(config.timings.patterns) or '(none)'}")
    print(f"  Periodic: {'yes' if config.timings.periodic else 'no'}")
    print(f"  Interval: {config.timings.interval}s")
    print(f"  Stdout output: {'enabled' if config.output.stdout else 'disabled'}")
    if config.output.mqtt:
        print(f"  MQTT output: {config.mqtt.host}:{config.mqtt.port} ({config.mqtt.topic_prefix})")
    else:
        print("  MQTT output: disabled")
    print(f"  Logging level: {config.logging.level}")

    print("\nConfiguration is valid!")
    return 0


def run_once(config_path: str | None, log_config: LogConfig) -> int:
    """Collect once and print the records; non-zero exit on a failed pass."""
    config = load_app_config(config_path, log_config)
    config.output.stdout = True

    result = asyncio.run(Application(config).run_once())
    if not result.available:
        return 1
    if result.state == "waiting":
        logger.warning("Boot has not finished yet, nothing collected")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="systemd-timings",
        description=APP_DESCRIPTION,
    )

    parser.add_argument(
        "config",
        nargs="?",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (INFO level)")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging (DEBUG level)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (only errors)")
    parser.add_argument("--log-file", metavar="PATH", help="Write logs to file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--validate", action="store_true", help="Validate configuration and exit")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Collect once, print line protocol to stdout and exit",
    )
    parser.add_argument(
        "--sample-config",
        action="store_true",
        help="Print a sample timings configuration and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def log_config_from_args(args: argparse.Namespace) -> LogConfig:
    log_config = LogConfig()

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"
    else:
        log_config.console_level = "warning"

    if args.no_color:
        log_config.console_colors = False

    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file

    return log_config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.sample_config:
        print(SAMPLE_CONFIG, end="")
        return 0

    log_config = log_config_from_args(args)
    setup_logging(log_config)

    config_path: str | None = args.config
    if not Path(args.config).exists():
        if not args.once:
            print(f"Configuration file not found: {args.config}", file=sys.stderr)
            return 1
        # --once works without a config file
        config_path = None

    if args.validate:
        return validate_config(args.config)

    try:
        if args.once:
            return run_once(config_path, log_config)
        asyncio.run(run_app(args.config, cli_log_config=log_config))
        return 0
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
