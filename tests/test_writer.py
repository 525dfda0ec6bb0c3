"""Tests for report artifacts."""
import json
import logging
from datetime import datetime

from bson import ObjectId

from mongo_audit.models import CollectionResult, DuplicateGroup, FieldScanResult
from mongo_audit.services.writer import SUMMARY_FILE_NAME, report_path, write_reports
from mongo_audit.utils.json_utils import json_safe


def result(name, **extra):
    return CollectionResult(
        collection=name,
        results=[FieldScanResult(field="email", duplicates=[DuplicateGroup(key="a@x", count=2, members=[1, 2])])],
        **extra,
    )


def test_writes_one_file_per_collection_and_summary(tmp_path):
    out = tmp_path / "duplicates_json"
    summary = write_reports([result("users"), result("orders", indexCount=3)], out)

    assert report_path(out, "users") == out / "users_duplicates.json"
    users = json.loads((out / "users_duplicates.json").read_text())
    assert users == {
        "collection": "users",
        "results": [{"field": "email", "duplicates": [{"key": "a@x", "count": 2, "members": [1, 2]}]}],
    }
    orders = json.loads((out / "orders_duplicates.json").read_text())
    assert orders["indexCount"] == 3

    combined = json.loads((out / SUMMARY_FILE_NAME).read_text())
    assert [r["collection"] for r in combined] == ["users", "orders"]
    assert len(summary.written) == 3
    assert summary.failed == []


def test_failed_write_does_not_stop_others(tmp_path, caplog):
    out = tmp_path / "duplicates_json"
    # a directory where the report file should go makes that one write fail
    (out / "users_duplicates.json").mkdir(parents=True)

    with caplog.at_level(logging.ERROR):
        summary = write_reports([result("users"), result("orders")], out)

    assert summary.failed == [out / "users_duplicates.json"]
    assert (out / "orders_duplicates.json").exists()
    assert (out / SUMMARY_FILE_NAME).exists()
    assert "could not write report" in caplog.text


def test_output_directory_is_idempotent(tmp_path):
    out = tmp_path / "duplicates_json"
    out.mkdir()
    write_reports([result("users")], out)
    write_reports([result("users")], out)
    assert (out / "users_duplicates.json").exists()


def test_empty_run_writes_empty_summary(tmp_path):
    out = tmp_path / "duplicates_json"
    write_reports([], out)
    assert json.loads((out / SUMMARY_FILE_NAME).read_text()) == []


def test_bson_values_are_serialized(tmp_path):
    oid = ObjectId("65a1b2c3d4e5f60718293a4b")
    when = datetime(2024, 1, 2, 3, 4, 5)
    assert json_safe({"ids": [oid], "at": when}) == {"ids": [str(oid)], "at": "2024-01-02T03:04:05"}

    out = tmp_path / "out"
    write_reports(
        [CollectionResult(
            collection="users",
            results=[FieldScanResult(field="created", duplicates=[DuplicateGroup(key=when, count=2, members=[oid, oid])])],
        )],
        out,
    )
    group = json.loads((out / "users_duplicates.json").read_text())["results"][0]["duplicates"][0]
    assert group["members"] == [str(oid), str(oid)]
    assert group["key"] == "2024-01-02T03:04:05"
