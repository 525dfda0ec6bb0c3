"""
Builds the duplicate scan plan from an index-build failure report.

Every index that failed with a DuplicateKey error (code 11000) becomes a field
to scan: the index name with its single-field ascending suffix "_1" removed.
Collections without such indexes are left out of the plan.
"""
import json
import logging
from pathlib import Path
from typing import Any, List, Union

from pydantic import ValidationError

from mongo_audit.errors import ConfigGenerationError
from mongo_audit.models import FailureReport, ScanTarget, is_duplicate_key
from mongo_audit.utils.json_utils import read_json, write_json

logger = logging.getLogger(__name__)

SINGLE_FIELD_SUFFIX = "_1"


def field_from_index_name(index_name: str) -> str:
    """Strip one trailing single-field suffix: "email_1" -> "email"."""
    if index_name.endswith(SINGLE_FIELD_SUFFIX):
        return index_name[: -len(SINGLE_FIELD_SUFFIX)]
    return index_name


def build_plan(report: FailureReport) -> List[ScanTarget]:
    plan = []
    for collection_name, indexes in report.collections():
        fields = [
            field_from_index_name(index_name)
            for index_name, failure in indexes.items()
            if is_duplicate_key(failure)
        ]
        if fields:
            plan.append(ScanTarget(collection=collection_name, fields=fields))
        else:
            logger.debug("No duplicate-key indexes for collection %s", collection_name)
    return plan


def parse_report(data: Any, path: Union[str, Path, None] = None) -> FailureReport:
    try:
        return FailureReport.model_validate(data)
    except ValidationError as exc:
        raise ConfigGenerationError(f"Malformed failure report: {exc}", path=path) from exc


def generate_plan(report_path: Union[str, Path], plan_path: Union[str, Path]) -> List[ScanTarget]:
    """
    Read the failure report, derive the scan plan and write it to plan_path.
    Raises ConfigGenerationError when the report is missing or malformed.
    """
    try:
        data = read_json(report_path)
    except FileNotFoundError as exc:
        raise ConfigGenerationError("Failure report not found", path=report_path) from exc
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigGenerationError(f"Failure report is not readable JSON: {exc}", path=report_path) from exc

    plan = build_plan(parse_report(data, report_path))

    try:
        write_json(plan_path, [target.model_dump() for target in plan])
    except OSError as exc:
        raise ConfigGenerationError(f"Could not write scan plan: {exc}", path=plan_path) from exc

    logger.info(
        "Scan plan written to %s: %d collection(s), %d field(s)",
        plan_path,
        len(plan),
        sum(len(t.fields) for t in plan),
    )
    return plan
