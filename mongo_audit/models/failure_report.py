"""
Failure report produced by a previous index-build attempt.

Shape: {collection: {indexName: {"err": {"code": ..., "errorResponse": {"code": ...}}}}}
Only the collection -> index mapping is validated. Index entries are read
leniently: a location that is missing or not an object simply has no code.
"""
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from pydantic import RootModel

DUPLICATE_KEY_CODE = 11000


class FailureReport(RootModel[Dict[str, Dict[str, Any]]]):
    """collection name -> index name -> failure entry, insertion order preserved."""

    def collections(self):
        return self.root.items()


def _lookup(value: Any, *path: str) -> Optional[Any]:
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _primary_code(entry: Any) -> Optional[Any]:
    return _lookup(entry, "err", "code")


def _nested_code(entry: Any) -> Optional[Any]:
    return _lookup(entry, "err", "errorResponse", "code")


# Tried in order, first non-missing value wins
CODE_EXTRACTORS: List[Callable[[Any], Optional[Any]]] = [
    _primary_code,
    _nested_code,
]


def extract_error_code(entry: Any) -> Optional[Any]:
    for extractor in CODE_EXTRACTORS:
        code = extractor(entry)
        if code is not None:
            return code
    return None


def is_duplicate_key(entry: Any) -> bool:
    code = extract_error_code(entry)
    return not isinstance(code, bool) and code == DUPLICATE_KEY_CODE
