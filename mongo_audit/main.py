"""
Command line entry points.

    mongo-audit-duplicates   find duplicate values behind failed unique indexes
    mongo-audit-indexes      report collections close to the index-count ceiling

Exit status is 0 when the run completes (even if single items failed) and 1
on fatal errors (unreadable failure report or plan, rejected connection
settings).
"""
import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from mongo_audit.config import Settings
from mongo_audit.errors import ConfigGenerationError, ConfigLoadError, DatabaseConfigError
from mongo_audit.services.index_audit import run_index_audit
from mongo_audit.services.pipeline import run_duplicate_audit
from mongo_audit.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _load_settings(overrides: dict) -> Settings:
    settings = Settings.from_env()
    updates = {key: value for key, value in overrides.items() if value is not None}
    # Re-validate so CLI values get the same checks as environment values
    return Settings(**{**settings.model_dump(), **updates})


def duplicates_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongo-audit-duplicates",
        description="Find duplicate values for indexes that failed with DuplicateKey errors.",
    )
    parser.add_argument("--report", type=Path, help="failure report (updateIndex.failure.json)")
    parser.add_argument("--plan", type=Path, help="scan plan to write and read")
    parser.add_argument("--skip-generate", action="store_true", help="reuse an existing scan plan")
    parser.add_argument("--output-dir", type=Path, help="directory for <collection>_duplicates.json")
    parser.add_argument("--concurrency", type=int, help="collections scanned at the same time")
    parser.add_argument("--field-concurrency", type=int, help="grouping scans per collection")
    parser.add_argument("--timeout", type=float, help="seconds per store round trip (0 disables)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser


def indexes_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongo-audit-indexes",
        description="Report collections whose index count reaches the ceiling, ranked by usage.",
    )
    parser.add_argument("--ceiling", type=int, help="index count to report at (default 64)")
    parser.add_argument("--output-dir", type=Path, help="directory for <collection>_indexes.json")
    parser.add_argument("--timeout", type=float, help="seconds per store round trip (0 disables)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser


def main_duplicates(argv: Optional[List[str]] = None) -> int:
    args = duplicates_parser().parse_args(argv)
    try:
        settings = _load_settings({
            "failure_report_path": args.report,
            "plan_path": args.plan,
            "duplicates_dir": args.output_dir,
            "max_concurrency": args.concurrency,
            "field_concurrency": args.field_concurrency,
            "scan_timeout": args.timeout,
            "log_level": args.log_level,
        })
    except ValidationError as exc:
        setup_logging()
        logger.error("Invalid configuration: %s", exc)
        return 1

    setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    try:
        asyncio.run(run_duplicate_audit(settings, skip_generate=args.skip_generate))
    except (ConfigGenerationError, ConfigLoadError, DatabaseConfigError) as exc:
        logger.error("Duplicate audit aborted: %s", exc)
        return 1
    return 0


def main_indexes(argv: Optional[List[str]] = None) -> int:
    args = indexes_parser().parse_args(argv)
    try:
        settings = _load_settings({
            "index_ceiling": args.ceiling,
            "indexes_dir": args.output_dir,
            "scan_timeout": args.timeout,
            "log_level": args.log_level,
        })
    except ValidationError as exc:
        setup_logging()
        logger.error("Invalid configuration: %s", exc)
        return 1

    setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    try:
        asyncio.run(run_index_audit(settings))
    except DatabaseConfigError as exc:
        logger.error("Index audit aborted: %s", exc)
        return 1
    except (PyMongoError, asyncio.TimeoutError) as exc:
        logger.error("Index audit aborted, could not list collections: %s", exc)
        return 1
    return 0
