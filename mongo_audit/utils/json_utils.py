"""
JSON helpers: convert BSON values to JSON-safe form and read/write JSON files.
"""
import base64
import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Union
from uuid import UUID

from bson import ObjectId
from bson.decimal128 import Decimal128
from bson.int64 import Int64


def json_safe(obj: Any) -> Any:
    """Convert driver values to JSON-serializable form."""
    if obj is None or isinstance(obj, (str, bool)):
        return obj
    if isinstance(obj, Int64):
        return int(obj)
    if isinstance(obj, (int, float)):
        return obj
    if isinstance(obj, dict):
        return {str(k): json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [json_safe(v) for v in obj]
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal128):
        return str(obj.to_decimal())
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    if isinstance(obj, bytes):
        return base64.b64encode(obj).decode("ascii")
    return str(obj)


def read_json(path: Union[str, Path]) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def write_json(path: Union[str, Path], data: Any) -> Path:
    """Write data as indented JSON, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(json_safe(data), indent=2, ensure_ascii=False), encoding="utf-8")
    return path
