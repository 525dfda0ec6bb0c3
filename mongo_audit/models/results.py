"""
Duplicate scan results and relationship metadata.

Optional report keys (indexCount, destCardinality, sourceCardinality) are only
serialized when they were explicitly set, so an explicit null stored in
metadata is kept while missing data stays absent.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

OPTIONAL_REPORT_KEYS = {"indexCount", "destCardinality", "sourceCardinality"}


class DuplicateGroup(BaseModel):
    """Documents sharing one value of the scanned field."""
    key: Any = None
    count: int
    members: List[Any] = Field(default_factory=list, description="_id of every member document")

    @model_validator(mode="after")
    def check_group(self):
        if self.count != len(self.members):
            raise ValueError(f"count {self.count} does not match {len(self.members)} members")
        if self.count < 2:
            raise ValueError(f"a duplicate group needs at least 2 members, got {self.count}")
        return self


class FieldScanResult(BaseModel):
    field: str
    duplicates: List[DuplicateGroup]


class CollectionResult(BaseModel):
    collection: str
    indexCount: Optional[int] = None
    results: List[FieldScanResult] = Field(default_factory=list)
    destCardinality: Optional[Any] = None
    sourceCardinality: Optional[Any] = None

    @property
    def group_count(self) -> int:
        return sum(len(r.duplicates) for r in self.results)

    def to_report(self) -> dict:
        keys = {"collection", "results"} | (self.model_fields_set & OPTIONAL_REPORT_KEYS)
        return self.model_dump(include=keys)


class CardinalitySide(BaseModel):
    model_config = ConfigDict(extra="allow")

    cardinality: Optional[Any] = None

    @property
    def has_cardinality(self) -> bool:
        return "cardinality" in self.model_fields_set


class RelationshipMetaRecord(BaseModel):
    """Companion metadata document of a relationship collection."""
    model_config = ConfigDict(extra="allow")

    collectionType: str
    source: Optional[CardinalitySide] = None
    dest: Optional[CardinalitySide] = None
