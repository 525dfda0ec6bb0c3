"""
Models package for the audit tools.
All models are pydantic; report keys keep the camelCase used in the JSON artifacts.
"""

from .failure_report import (
    DUPLICATE_KEY_CODE,
    CODE_EXTRACTORS,
    FailureReport,
    extract_error_code,
    is_duplicate_key,
)
from .plan import ScanTarget
from .results import (
    CardinalitySide,
    CollectionResult,
    DuplicateGroup,
    FieldScanResult,
    RelationshipMetaRecord,
)
from .index_audit import IndexAuditReport, IndexUsage

__all__ = [
    "DUPLICATE_KEY_CODE",
    "CODE_EXTRACTORS",
    "FailureReport",
    "extract_error_code",
    "is_duplicate_key",
    "ScanTarget",
    "CardinalitySide",
    "CollectionResult",
    "DuplicateGroup",
    "FieldScanResult",
    "RelationshipMetaRecord",
    "IndexAuditReport",
    "IndexUsage",
]
