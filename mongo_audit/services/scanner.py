"""
Duplicate scanner: one grouping aggregation per field of a scan target.

A field whose scan finds nothing (or fails) contributes no entry to the
collection result; the distinction between "clean" and "failed" is only
visible in the log.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from mongo_audit.errors import ScanError
from mongo_audit.models import CollectionResult, DuplicateGroup, FieldScanResult, ScanTarget

logger = logging.getLogger(__name__)


def duplicate_pipeline(field: str) -> List[Dict[str, Any]]:
    """Group by the field value, keep groups with more than one member, biggest first."""
    return [
        {
            "$group": {
                "_id": f"${field}",
                "count": {"$sum": 1},
                "members": {"$push": "$_id"},
            }
        },
        {"$match": {"count": {"$gt": 1}}},
        {"$sort": {"count": -1}},
    ]


def _to_group(row: Dict[str, Any]) -> DuplicateGroup:
    return DuplicateGroup(key=row.get("_id"), count=row["count"], members=list(row.get("members", [])))


async def scan_field(collection, field: str, *, timeout: Optional[float] = None) -> Optional[FieldScanResult]:
    """
    Run the grouping scan for one field.
    Returns None when no value is shared by two or more documents.
    Raises ScanError on query failure, timeout or a malformed group.
    """
    options: Dict[str, Any] = {"allowDiskUse": True}
    if timeout:
        options["maxTimeMS"] = int(timeout * 1000)

    try:
        cursor = collection.aggregate(duplicate_pipeline(field), **options)
        rows = await asyncio.wait_for(cursor.to_list(length=None), timeout=timeout)
        groups = [_to_group(row) for row in rows]
    except asyncio.TimeoutError as exc:
        raise ScanError(f"scan timed out after {timeout}s", collection=collection.name, field=field) from exc
    except (PyMongoError, ValidationError, KeyError) as exc:
        raise ScanError(str(exc), collection=collection.name, field=field) from exc

    if not groups:
        return None
    return FieldScanResult(field=field, duplicates=groups)


async def scan_collection(
    db,
    target: ScanTarget,
    *,
    field_concurrency: int = 1,
    timeout: Optional[float] = None,
) -> CollectionResult:
    """
    Scan every field of the target. Field failures are logged and treated as clean.
    Raises ScanError if the collection itself cannot be opened.
    """
    try:
        collection = db.get_collection(target.collection)
    except (PyMongoError, TypeError, ValueError) as exc:
        raise ScanError(f"cannot open collection: {exc}", collection=target.collection) from exc

    logger.info("Scanning collection %s (%d field(s))", target.collection, len(target.fields))
    semaphore = asyncio.Semaphore(field_concurrency)

    async def run(field: str) -> Optional[FieldScanResult]:
        async with semaphore:
            logger.debug("Checking duplicates for %s.%s", target.collection, field)
            try:
                found = await scan_field(collection, field, timeout=timeout)
            except ScanError as exc:
                logger.warning("Scan of %s.%s failed, treating as no duplicates: %s", target.collection, field, exc)
                return None
            if found is None:
                logger.info("No duplicates for field %s in %s", field, target.collection)
            else:
                logger.info(
                    "Found %d duplicate group(s) for field %s in %s",
                    len(found.duplicates),
                    field,
                    target.collection,
                )
            return found

    scanned = await asyncio.gather(*(run(field) for field in target.fields))
    return CollectionResult(
        collection=target.collection,
        results=[result for result in scanned if result is not None],
    )
