#!/usr/bin/env python3
"""fwingest — load netfilter firewall log files into a flow table."""

import logging
import sys
from argparse import ArgumentParser

import yaml
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from fwingest.config import LOG_LEVELS, load_config, with_overrides
from fwingest.ingest import IngestStats, ingest_file
from fwingest.storage import FlowStore, JsonLinesSink

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [fwingest] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="fwingest",
        description="Parse netfilter firewall logs and store one row per logged packet.",
    )
    parser.add_argument(
        "-f", "--file",
        dest="files",
        action="append",
        required=True,
        help="Path to a firewall log file (repeat for several files)",
    )
    parser.add_argument(
        "--config",
        help="YAML config file (default: $CONFIG_PATH)",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL, overrides config",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Diagnostics verbosity, overrides config",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print records as JSON lines instead of storing them",
    )
    parser.add_argument(
        "--stats-file",
        help="Write ingestion counters to this JSON file",
    )
    return parser


def run(args) -> int:
    """Ingest every requested file. Returns the process exit status."""
    try:
        config = with_overrides(
            load_config(args.config),
            database_url=args.database_url,
            log_level=args.log_level,
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    logging.getLogger().setLevel(config.log_level)

    totals = IngestStats()
    store = None
    try:
        if args.dry_run:
            sink = JsonLinesSink(sys.stdout)
        else:
            url = config.resolve_database_url()
            logger.info("Database: %s", make_url(url).render_as_string(hide_password=True))
            store = FlowStore(url, echo=config.echo_sql)
            store.init_schema()
            sink = store

        for path in args.files:
            totals.merge(ingest_file(path, sink))
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Ingest failed: %s", e)
        return 1
    except SQLAlchemyError as e:
        logger.error("Database unavailable: %s", e)
        return 1
    finally:
        if store is not None:
            store.close()

    logger.info(
        "Done: %d lines, %d inserted, %d rejected, %d skipped",
        totals.total_lines, totals.inserted, totals.rejected, totals.skipped,
    )
    if args.stats_file:
        try:
            totals.save(args.stats_file)
        except OSError as e:
            logger.error("Cannot write stats file: %s", e)
            return 1
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(130)
