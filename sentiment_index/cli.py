"""
Sentiment Index - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the sentiment service.

============================================================
USAGE
============================================================
sentiment-index init-db
sentiment-index compute --record
sentiment-index collect breadth '{"rising": 3000, "falling": 2000}'
sentiment-index schedule
sentiment-index serve --port 8000

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from core.clock import SystemClock
from database.engine import DatabaseError, create_all_tables, init_database, session_scope
from storage.repositories import RepositoryException
from .collection import IndicatorCollector
from .config import SentimentIndexConfig
from .exceptions import SentimentIndexError
from .normalizer import IndicatorNormalizer
from .scheduler import SentimentScheduler
from .service import SentimentService
from .types import IndicatorType


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sentiment-index",
        description="A-share market sentiment index service",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: SENTIMENT_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    compute = subparsers.add_parser("compute", help="Compute the current sentiment")
    compute.add_argument(
        "--record",
        action="store_true",
        help="Append the result to the sentiment history",
    )

    collect = subparsers.add_parser(
        "collect",
        help="Store one indicator observation supplied as JSON",
    )
    collect.add_argument(
        "indicator_type",
        choices=[t.value for t in IndicatorType] + ["vix"],
    )
    collect.add_argument("payload", help="JSON number or object, e.g. '{\"ratio\": 0.6}'")
    collect.add_argument("--source", type=str, default="manual")

    subparsers.add_parser(
        "schedule",
        help="Compute and record on every interval during trading hours",
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


# ============================================================
# COMMANDS
# ============================================================

def cmd_init_db(config: SentimentIndexConfig) -> int:
    init_database()
    return 0


def cmd_compute(config: SentimentIndexConfig, record: bool) -> int:
    clock = SystemClock(config.market_timezone)
    create_all_tables()
    with session_scope() as session:
        service = SentimentService(session, config=config, clock=clock)
        if record:
            result = service.compute_and_record()
        else:
            result = service.calculate_current_sentiment()

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_collect(config: SentimentIndexConfig, indicator_type: str, payload: str, source: str) -> int:
    """Run one collection with the payload as the fetched value; 1 if it was stored invalid."""
    clock = SystemClock(config.market_timezone)
    create_all_tables()
    with session_scope() as session:
        collector = IndicatorCollector(session, IndicatorNormalizer(config.bounds, clock), clock)
        result = collector.collect(indicator_type, source, lambda: json.loads(payload))

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


def cmd_schedule(config: SentimentIndexConfig) -> int:
    clock = SystemClock(config.market_timezone)
    normalizer = IndicatorNormalizer(config.bounds, clock)

    def job():
        with session_scope() as session:
            service = SentimentService(session, config=config, clock=clock, normalizer=normalizer)
            return service.compute_and_record()

    scheduler = SentimentScheduler(
        job,
        clock=clock,
        interval_minutes=config.schedule_interval_minutes,
    )

    init_database()
    try:
        asyncio.run(scheduler.run_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    return 0


def cmd_serve(config: SentimentIndexConfig, host: Optional[str], port: Optional[int]) -> int:
    import uvicorn

    host = host or config.api_host
    port = port or config.api_port

    init_database()
    logger.info(f"Starting Sentiment API on {host}:{port}")

    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        log_level=config.log_level.lower(),
        access_log=True,
    )
    return 0


# ============================================================
# ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = SentimentIndexConfig.from_env()
    except SentimentIndexError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.log_level)

    try:
        if args.command == "init-db":
            return cmd_init_db(config)
        if args.command == "compute":
            return cmd_compute(config, args.record)
        if args.command == "collect":
            return cmd_collect(config, args.indicator_type, args.payload, args.source)
        if args.command == "schedule":
            return cmd_schedule(config)
        if args.command == "serve":
            return cmd_serve(config, args.host, args.port)
    except (SentimentIndexError, DatabaseError, RepositoryException) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
