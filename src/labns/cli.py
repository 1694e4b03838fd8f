"""CLI for checking the DNS service configuration."""
from __future__ import annotations

import argparse
import logging
import sys

from .config import dump_config, load_config
from .errors import ConfigError

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list; defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: Parsed CLI options:
            - config (str): Path to the JSON config file.
            - log_level (str): Logging level.
            - dump (bool): Print the normalized configuration.
            - format (str): Output format for `--dump`.
    """
    parser = argparse.ArgumentParser(
        description="Validate the local-records / upstream DNS configuration",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", default="config.json", help="Path to JSON config")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    parser.add_argument("--dump", action="store_true", help="Print the normalized configuration")
    parser.add_argument("--format", default="yaml", choices=["yaml", "json"], help="Output format for --dump")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI entry point.

    Returns:
        int: 0 when the configuration is valid, 1 otherwise.
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    up = config.upstream_nameservers
    for role, ns in (("primary", up.primary), ("secondary", up.secondary)):
        logger.info("%s upstream: %s port %d", role, ", ".join(ns.addresses), ns.port)

    if args.dump:
        sys.stdout.write(dump_config(config, args.format))
    return 0


if __name__ == "__main__":
    sys.exit(main())
