"""
Relationship enrichment: annotate duplicate reports of relationship
collections with the cardinality stored in the metadata collection.
"""
import asyncio
import logging
from typing import Optional

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from mongo_audit.errors import EnrichmentError
from mongo_audit.models import CollectionResult, RelationshipMetaRecord

logger = logging.getLogger(__name__)


def is_relationship_collection(name: str, token: str) -> bool:
    return token in name


async def find_relationship_meta(
    db,
    collection_name: str,
    *,
    meta_collection: str,
    timeout: Optional[float] = None,
) -> Optional[RelationshipMetaRecord]:
    """Look up the metadata record whose collectionType equals the collection name."""
    try:
        doc = await asyncio.wait_for(
            db.get_collection(meta_collection).find_one({"collectionType": collection_name}),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        raise EnrichmentError(f"metadata lookup timed out after {timeout}s", collection=collection_name) from exc
    except PyMongoError as exc:
        raise EnrichmentError(f"metadata lookup failed: {exc}", collection=collection_name) from exc

    if doc is None:
        return None
    try:
        return RelationshipMetaRecord.model_validate({k: v for k, v in doc.items() if k != "_id"})
    except ValidationError as exc:
        raise EnrichmentError(f"malformed metadata record: {exc}", collection=collection_name) from exc


async def enrich_result(
    db,
    result: CollectionResult,
    *,
    token: str,
    meta_collection: str,
    timeout: Optional[float] = None,
) -> CollectionResult:
    """
    Copy source/dest cardinality onto the result when the collection is a
    relationship collection with duplicates. Never raises for lookup problems.
    """
    if not result.results or not is_relationship_collection(result.collection, token):
        return result

    try:
        meta = await find_relationship_meta(db, result.collection, meta_collection=meta_collection, timeout=timeout)
    except EnrichmentError as exc:
        logger.warning("Enrichment of %s skipped: %s", result.collection, exc)
        return result

    if meta is None:
        logger.info("No relationship metadata for %s in %s", result.collection, meta_collection)
        return result

    copied = []
    if meta.dest is not None and meta.dest.has_cardinality:
        result.destCardinality = meta.dest.cardinality
        copied.append(f"dest={meta.dest.cardinality!r}")
    if meta.source is not None and meta.source.has_cardinality:
        result.sourceCardinality = meta.source.cardinality
        copied.append(f"source={meta.source.cardinality!r}")

    if copied:
        logger.info("Enriched %s with relationship metadata (%s)", result.collection, ", ".join(copied))
    else:
        logger.info("Relationship metadata for %s has no cardinality", result.collection)
    return result
