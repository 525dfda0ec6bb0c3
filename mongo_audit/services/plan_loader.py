"""
Loads a scan plan artifact.
Malformed entries are skipped with a warning; only an unreadable file is fatal.
"""
import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from mongo_audit.errors import ConfigLoadError
from mongo_audit.models import ScanTarget
from mongo_audit.utils.json_utils import read_json

logger = logging.getLogger(__name__)


def parse_target(entry: Any, position: int) -> Optional[ScanTarget]:
    """Validate one plan entry, returning None when it has to be skipped."""
    if not isinstance(entry, Mapping):
        logger.warning("Plan entry #%d is not an object, skipping: %r", position, entry)
        return None

    collection = entry.get("collection")
    if not isinstance(collection, str) or not collection:
        logger.warning("Plan entry #%d has no collection name, skipping: %r", position, entry)
        return None

    fields = entry.get("fields")
    if isinstance(fields, (str, bytes)) or not isinstance(fields, Sequence):
        logger.warning("Plan entry #%d (%s) has no field list, skipping: %r", position, collection, fields)
        return None

    valid_fields = []
    for field in fields:
        if isinstance(field, str) and field:
            valid_fields.append(field)
        else:
            logger.warning("Ignoring invalid field name %r for collection %s", field, collection)

    return ScanTarget(collection=collection, fields=valid_fields)


def load_plan(path: Union[str, Path]) -> List[ScanTarget]:
    """
    Read the plan at path.
    Raises ConfigLoadError if the file cannot be read or is not a JSON array.
    """
    try:
        data = read_json(path)
    except FileNotFoundError as exc:
        raise ConfigLoadError("Scan plan not found", path=path) from exc
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"Scan plan is not readable JSON: {exc}", path=path) from exc

    if not isinstance(data, list):
        raise ConfigLoadError(f"Scan plan must be a JSON array, got {type(data).__name__}", path=path)

    targets = []
    for position, entry in enumerate(data):
        target = parse_target(entry, position)
        if target is not None:
            targets.append(target)

    skipped = len(data) - len(targets)
    if skipped:
        logger.warning("Skipped %d malformed plan entr%s in %s", skipped, "y" if skipped == 1 else "ies", path)
    logger.info("Loaded %d scan target(s) from %s", len(targets), path)
    return targets


def merge_targets(targets: List[ScanTarget]) -> List[ScanTarget]:
    """Fold repeated collections into their first entry, keeping field order."""
    merged: Dict[str, ScanTarget] = {}
    for target in targets:
        existing = merged.get(target.collection)
        if existing is None:
            merged[target.collection] = ScanTarget(collection=target.collection, fields=list(dict.fromkeys(target.fields)))
            continue
        logger.warning("Collection %s appears more than once in the plan, merging fields", target.collection)
        for field in target.fields:
            if field not in existing.fields:
                existing.fields.append(field)
    return list(merged.values())
