"""
Index audit: report collections whose index count reaches the ceiling,
with their indexes ranked by usage ($indexStats accesses.ops).
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pymongo.errors import PyMongoError

from mongo_audit.config import Settings
from mongo_audit.db import open_database
from mongo_audit.errors import WriteError
from mongo_audit.models import IndexAuditReport, IndexUsage
from mongo_audit.services.writer import write_artifact

logger = logging.getLogger(__name__)


async def list_indexes(collection, *, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
    cursor = collection.list_indexes()
    indexes = await asyncio.wait_for(cursor.to_list(length=None), timeout=timeout)
    return [dict(index) for index in indexes]


async def index_usage(collection, *, timeout: Optional[float] = None) -> Dict[str, int]:
    """Map index name -> number of operations that used it."""
    cursor = collection.aggregate([{"$indexStats": {}}])
    stats = await asyncio.wait_for(cursor.to_list(length=None), timeout=timeout)
    usage = {}
    for stat in stats:
        accesses = stat.get("accesses") or {}
        usage[stat["name"]] = int(accesses.get("ops") or 0)
    return usage


async def count_indexes(db, collection_name: str, *, timeout: Optional[float] = None) -> Optional[int]:
    """Number of indexes on a collection, or None if they cannot be listed."""
    try:
        return len(await list_indexes(db.get_collection(collection_name), timeout=timeout))
    except (PyMongoError, asyncio.TimeoutError) as exc:
        logger.warning("Could not count indexes of %s: %s", collection_name, exc)
        return None


async def audit_collection(
    db,
    collection_name: str,
    *,
    ceiling: int,
    timeout: Optional[float] = None,
) -> Optional[IndexAuditReport]:
    """Build the report for one collection, or None if it is below the ceiling or unreadable."""
    collection = db.get_collection(collection_name)
    try:
        indexes = await list_indexes(collection, timeout=timeout)
    except (PyMongoError, asyncio.TimeoutError) as exc:
        logger.error("Could not list indexes of %s: %s", collection_name, exc)
        return None

    index_count = len(indexes)
    if index_count < ceiling:
        logger.info("Collection %s has only %d index(es), skipping", collection_name, index_count)
        return None
    logger.info("Collection %s has %d indexes", collection_name, index_count)

    try:
        usage = await index_usage(collection, timeout=timeout)
    except (PyMongoError, asyncio.TimeoutError) as exc:
        logger.error("Could not read index usage of %s: %s", collection_name, exc)
        usage = {}

    ranked = sorted(
        (IndexUsage.model_validate({**index, "usageCount": usage.get(index.get("name"), 0)}) for index in indexes),
        key=lambda index: index.usageCount,
        reverse=True,
    )
    return IndexAuditReport(collection=collection_name, indexCount=index_count, indexes=ranked)


def index_report_path(output_dir: Union[str, Path], collection_name: str) -> Path:
    return Path(output_dir) / f"{collection_name}_indexes.json"


async def run_index_audit(settings: Settings, db=None) -> List[IndexAuditReport]:
    """Audit every collection of the database and write a report for each one at or over the ceiling."""
    if db is None:
        async with open_database(settings) as opened:
            return await run_index_audit(settings, opened)

    timeout = settings.timeout_or_none
    names = await asyncio.wait_for(db.list_collection_names(), timeout=timeout)
    reports = []
    for name in names:
        logger.info("Processing collection: %s", name)
        report = await audit_collection(db, name, ceiling=settings.index_ceiling, timeout=timeout)
        if report is None:
            continue
        reports.append(report)
        path = index_report_path(settings.indexes_dir, name)
        try:
            write_artifact(path, report.to_report())
        except WriteError as exc:
            logger.error("%s", exc)
            continue
        logger.info("Index report for %s written to %s", name, path)

    logger.info(
        "Index audit finished: %d collection(s) checked, %d at or over %d indexes",
        len(names),
        len(reports),
        settings.index_ceiling,
    )
    return reports
