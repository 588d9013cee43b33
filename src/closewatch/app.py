from __future__ import annotations

import argparse
import json
import logging
import sys

from . import __version__
from .closes.service import get_channel_closes
from .config import ClosewatchConfig
from .errors import ClosewatchError
from .log import set_logger

DEFAULT_CONFIG = "~/.closewatch/closewatch.toml"

logger = logging.getLogger(__name__)


def _get_args():
    parser = argparse.ArgumentParser(
        prog="closewatch",
        description="Reporting how the last channels of a lnd node were closed",
    )
    parser.add_argument(
        "--config",
        type=str,
        help=f"Input file for reading (default: '{DEFAULT_CONFIG}')",
        default=DEFAULT_CONFIG,
    )
    parser.add_argument(
        "--node",
        type=str,
        help="Name of a node configured in the 'nodes' section (default: 'lnd')",
        default=None,
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Number of the last closed channels to report (default: from config)",
        default=None,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show the version",
    )
    return parser.parse_args()


def app():
    args = _get_args()
    if args.version:
        print(f"Version: {__version__}")
        sys.exit(0)

    try:
        config = ClosewatchConfig.from_config_file(args.config)
    except (FileExistsError, ValueError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        sys.exit(1)

    set_logger(config.log_file, config.log_level)
    logger.info(f"Closewatch {__version__=} starting...")

    try:
        closes = get_channel_closes(args.limit, args.node, config=config)
    except ClosewatchError as e:
        logger.exception("Could not create the closure report")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(closes.to_dict(), indent=2))
    logger.info(f"Reported {len(closes.closes)} closed channels")
    logging.shutdown()


if __name__ == "__main__":
    app()
