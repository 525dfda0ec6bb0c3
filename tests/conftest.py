import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mongo_audit.config import Settings


@pytest.fixture
def write_json_file(tmp_path):
    def _write(name, data):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        failure_report_path=tmp_path / "input" / "updateIndex.failure.json",
        plan_path=tmp_path / "output" / "duplicateKeys.json",
        duplicates_dir=tmp_path / "output" / "duplicates_json",
        indexes_dir=tmp_path / "output" / "indexes_json",
        log_dir=tmp_path / "logs",
        scan_timeout=5,
    )
