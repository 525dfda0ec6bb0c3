"""
Duplicate audit orchestration: generate -> load -> scan + enrich -> write.

Generation and loading failures are fatal and propagate to the caller.
Everything after that is isolated per field, per collection and per artifact,
so the run always finishes with a summary.
"""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from mongo_audit.config import Settings
from mongo_audit.db import open_database
from mongo_audit.errors import ScanError
from mongo_audit.models import CollectionResult, ScanTarget
from mongo_audit.services.config_generator import generate_plan
from mongo_audit.services.enricher import enrich_result
from mongo_audit.services.index_audit import count_indexes
from mongo_audit.services.plan_loader import load_plan, merge_targets
from mongo_audit.services.scanner import scan_collection
from mongo_audit.services.writer import write_reports

logger = logging.getLogger(__name__)


class RunSummary(BaseModel):
    collections_planned: int = 0
    collections_skipped: List[str] = Field(default_factory=list)
    results: List[CollectionResult] = Field(default_factory=list)
    written: List[Path] = Field(default_factory=list)
    failed_writes: List[Path] = Field(default_factory=list)

    @property
    def groups_found(self) -> int:
        return sum(result.group_count for result in self.results)


async def process_target(db, target: ScanTarget, settings: Settings) -> Optional[CollectionResult]:
    """Scan and enrich one collection. Returns None when it has no duplicates."""
    timeout = settings.timeout_or_none
    result = await scan_collection(
        db,
        target,
        field_concurrency=settings.field_concurrency,
        timeout=timeout,
    )
    if not result.results:
        logger.info("No duplicates found in collection %s", target.collection)
        return None

    index_count = await count_indexes(db, target.collection, timeout=timeout)
    if index_count is not None:
        result.indexCount = index_count

    return await enrich_result(
        db,
        result,
        token=settings.relationship_token,
        meta_collection=settings.meta_collection,
        timeout=timeout,
    )


async def scan_targets(db, targets: List[ScanTarget], settings: Settings) -> RunSummary:
    """Run every target through a bounded pool; results keep plan order."""
    summary = RunSummary(collections_planned=len(targets))
    semaphore = asyncio.Semaphore(settings.max_concurrency)

    async def run(target: ScanTarget) -> Tuple[Optional[CollectionResult], bool]:
        """Returns (result, skipped)."""
        async with semaphore:
            try:
                return await process_target(db, target, settings), False
            except ScanError as exc:
                logger.error("Skipping collection %s: %s", target.collection, exc)
            except Exception:
                logger.exception("Unexpected failure while processing collection %s, skipping", target.collection)
            return None, True

    outcomes = await asyncio.gather(*(run(target) for target in targets))
    for target, (result, skipped) in zip(targets, outcomes):
        if skipped:
            summary.collections_skipped.append(target.collection)
        elif result is not None:
            summary.results.append(result)
    return summary


def log_summary(summary: RunSummary) -> None:
    logger.info("Duplicate audit summary:")
    logger.info("  collections planned: %d", summary.collections_planned)
    logger.info("  collections with duplicates: %d", len(summary.results))
    for result in summary.results:
        logger.info(
            "    %s: %s",
            result.collection,
            ", ".join(f"{r.field} ({len(r.duplicates)} group(s))" for r in result.results),
        )
    logger.info("  duplicate groups found: %d", summary.groups_found)
    if summary.collections_skipped:
        logger.warning("  collections skipped after errors: %s", ", ".join(summary.collections_skipped))
    logger.info("  reports written: %d", len(summary.written))
    if summary.failed_writes:
        logger.warning("  reports failed: %s", ", ".join(str(p) for p in summary.failed_writes))


async def run_duplicate_audit(settings: Settings, db=None, *, skip_generate: bool = False) -> RunSummary:
    """
    Run the whole duplicate audit.

    db: an already opened database; when omitted a connection is opened from
    settings and closed when the run ends.
    skip_generate: reuse the plan at settings.plan_path instead of regenerating it.

    Raises ConfigGenerationError / ConfigLoadError on fatal input problems.
    """
    if not skip_generate:
        generate_plan(settings.failure_report_path, settings.plan_path)
    targets = merge_targets(load_plan(settings.plan_path))

    if db is None:
        async with open_database(settings) as opened:
            summary = await scan_targets(opened, targets, settings)
    else:
        summary = await scan_targets(db, targets, settings)

    written = write_reports(summary.results, settings.duplicates_dir)
    summary.written = written.written
    summary.failed_writes = written.failed
    log_summary(summary)
    return summary
