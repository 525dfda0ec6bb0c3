"""
Writes one JSON report per collection plus a summary of the whole run.
"""
import logging
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, Field

from mongo_audit.errors import WriteError
from mongo_audit.models import CollectionResult
from mongo_audit.utils.json_utils import write_json

logger = logging.getLogger(__name__)

SUMMARY_FILE_NAME = "duplicates_summary.json"


class WriteSummary(BaseModel):
    written: List[Path] = Field(default_factory=list)
    failed: List[Path] = Field(default_factory=list)


def report_path(output_dir: Union[str, Path], collection_name: str) -> Path:
    return Path(output_dir) / f"{collection_name}_duplicates.json"


def write_artifact(path: Path, data) -> Path:
    try:
        return write_json(path, data)
    except (OSError, TypeError, ValueError) as exc:
        raise WriteError(f"could not write report: {exc}", path=path) from exc


def write_reports(results: List[CollectionResult], output_dir: Union[str, Path]) -> WriteSummary:
    """
    Persist every collection result and the run summary.
    A failed write is logged and does not stop the remaining ones.
    """
    output_dir = Path(output_dir)
    summary = WriteSummary()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Could not create output directory %s: %s", output_dir, exc)

    reports = [result.to_report() for result in results]
    targets = [(report_path(output_dir, r.collection), report) for r, report in zip(results, reports)]
    targets.append((output_dir / SUMMARY_FILE_NAME, reports))

    for path, data in targets:
        try:
            write_artifact(path, data)
        except WriteError as exc:
            logger.error("%s", exc)
            summary.failed.append(path)
            continue
        logger.info("Report written: %s", path)
        summary.written.append(path)
    return summary
