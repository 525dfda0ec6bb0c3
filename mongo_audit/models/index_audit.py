"""
Index count / usage audit models.
"""
from typing import List

from pydantic import BaseModel, ConfigDict


class IndexUsage(BaseModel):
    """An index definition as returned by listIndexes, plus its usage counter."""
    model_config = ConfigDict(extra="allow")

    name: str
    usageCount: int = 0


class IndexAuditReport(BaseModel):
    collection: str
    indexCount: int
    indexes: List[IndexUsage]

    def to_report(self) -> dict:
        return self.model_dump()
