"""Tests for the per-field duplicate scans."""
import logging

import pytest
from pydantic import ValidationError

from mongo_audit.errors import ScanError
from mongo_audit.models import DuplicateGroup, ScanTarget
from mongo_audit.services.scanner import duplicate_pipeline, scan_collection, scan_field
from tests.fakes import FakeCollection, FakeDatabase


def people():
    return FakeCollection(
        "people",
        [
            {"_id": 1, "ssn": "A", "email": "a@x"},
            {"_id": 2, "ssn": "B", "email": "b@x"},
            {"_id": 3, "ssn": "A", "email": "c@x"},
            {"_id": 4, "ssn": "B", "email": "d@x"},
            {"_id": 5, "ssn": "A", "email": "e@x"},
            {"_id": 6, "ssn": "C", "email": "f@x"},
        ],
    )


def test_pipeline_shape():
    assert duplicate_pipeline("email") == [
        {"$group": {"_id": "$email", "count": {"$sum": 1}, "members": {"$push": "$_id"}}},
        {"$match": {"count": {"$gt": 1}}},
        {"$sort": {"count": -1}},
    ]


def test_group_invariants():
    with pytest.raises(ValidationError):
        DuplicateGroup(key="a", count=2, members=[1])
    with pytest.raises(ValidationError):
        DuplicateGroup(key="a", count=1, members=[1])


@pytest.mark.asyncio
async def test_scenario_f_groups_ordered_by_count():
    result = await scan_field(people(), "ssn")

    assert result.field == "ssn"
    assert [(g.key, g.count, g.members) for g in result.duplicates] == [
        ("A", 3, [1, 3, 5]),
        ("B", 2, [2, 4]),
    ]
    for group in result.duplicates:
        assert group.count == len(group.members)
        assert group.count > 1


@pytest.mark.asyncio
async def test_missing_values_group_under_null():
    coll = FakeCollection("c", [{"_id": 1}, {"_id": 2}, {"_id": 3, "code": "x"}])
    result = await scan_field(coll, "code")
    assert [(g.key, g.count) for g in result.duplicates] == [(None, 2)]


@pytest.mark.asyncio
async def test_clean_field_returns_none():
    assert await scan_field(people(), "email") is None


@pytest.mark.asyncio
async def test_scan_options_passed_to_store():
    coll = people()
    await scan_field(coll, "ssn", timeout=2.5)
    assert coll.aggregate_calls[0]["options"] == {"allowDiskUse": True, "maxTimeMS": 2500}


@pytest.mark.asyncio
async def test_query_error_becomes_scan_error():
    coll = FakeCollection("people", fail_fields={"ssn"})
    with pytest.raises(ScanError) as excinfo:
        await scan_field(coll, "ssn")
    assert excinfo.value.collection == "people"
    assert excinfo.value.field == "ssn"


@pytest.mark.asyncio
async def test_timeout_becomes_scan_error():
    coll = FakeCollection("slow", [{"_id": 1, "a": 1}, {"_id": 2, "a": 1}], delay=0.5)
    with pytest.raises(ScanError):
        await scan_field(coll, "a", timeout=0.01)


@pytest.mark.asyncio
async def test_collection_result_omits_clean_fields(caplog):
    db = FakeDatabase(people())
    with caplog.at_level(logging.INFO):
        result = await scan_collection(db, ScanTarget(collection="people", fields=["email", "ssn"]))

    assert result.collection == "people"
    assert [r.field for r in result.results] == ["ssn"]
    assert "No duplicates for field email in people" in caplog.text
    assert result.to_report().keys() == {"collection", "results"}


@pytest.mark.asyncio
async def test_failed_field_does_not_stop_others(caplog):
    coll = people()
    coll.fail_fields = {"email"}
    db = FakeDatabase(coll)
    with caplog.at_level(logging.WARNING):
        result = await scan_collection(db, ScanTarget(collection="people", fields=["email", "ssn"]), field_concurrency=2)

    assert [r.field for r in result.results] == ["ssn"]
    assert "Scan of people.email failed" in caplog.text


@pytest.mark.asyncio
async def test_field_order_kept_with_parallel_scans():
    coll = FakeCollection(
        "c",
        [{"_id": i, "a": 1, "b": 2, "c": 3} for i in range(3)],
    )
    result = await scan_collection(FakeDatabase(coll), ScanTarget(collection="c", fields=["c", "a", "b"]), field_concurrency=3)
    assert [r.field for r in result.results] == ["c", "a", "b"]


@pytest.mark.asyncio
async def test_unopenable_collection_raises():
    db = FakeDatabase(bad_names={"broken"})
    with pytest.raises(ScanError):
        await scan_collection(db, ScanTarget(collection="broken", fields=["a"]))
