"""
Scan plan: which fields of which collections must be checked for duplicates.
"""
from typing import List

from pydantic import BaseModel, Field


class ScanTarget(BaseModel):
    collection: str = Field(..., min_length=1)
    fields: List[str] = Field(default_factory=list)
