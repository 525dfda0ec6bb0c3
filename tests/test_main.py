"""Tests for the command line entry points."""
import json
import logging

import pytest

from mongo_audit import main as main_module


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    return tmp_path


def test_missing_report_exits_nonzero(cli_env):
    assert main_module.main_duplicates(["--report", str(cli_env / "missing.json")]) == 1


def test_missing_plan_exits_nonzero(cli_env):
    assert main_module.main_duplicates(["--skip-generate", "--plan", str(cli_env / "missing.json")]) == 1


def test_invalid_option_exits_nonzero(cli_env):
    assert main_module.main_duplicates(["--concurrency", "0"]) == 1


def test_successful_run_exits_zero(cli_env, monkeypatch):
    calls = {}

    async def fake_run(settings, db=None, *, skip_generate=False):
        calls["settings"] = settings
        calls["skip_generate"] = skip_generate

    monkeypatch.setattr(main_module, "run_duplicate_audit", fake_run)
    code = main_module.main_duplicates(["--skip-generate", "--concurrency", "3", "--output-dir", "reports"])

    assert code == 0
    assert calls["skip_generate"] is True
    assert calls["settings"].max_concurrency == 3
    assert str(calls["settings"].duplicates_dir) == "reports"


def test_index_audit_uses_ceiling(cli_env, monkeypatch):
    seen = {}

    async def fake_run(settings, db=None):
        seen["ceiling"] = settings.index_ceiling
        return []

    monkeypatch.setattr(main_module, "run_index_audit", fake_run)
    assert main_module.main_indexes(["--ceiling", "10"]) == 0
    assert seen["ceiling"] == 10


def test_bad_db_uri_exits_nonzero(cli_env, monkeypatch, caplog):
    plan = cli_env / "plan.json"
    plan.write_text(json.dumps([{"collection": "users", "fields": ["email"]}]), encoding="utf-8")
    monkeypatch.setenv("DB_URI", "mongodb://host:notaport")

    with caplog.at_level(logging.ERROR):
        code = main_module.main_duplicates(["--skip-generate", "--plan", str(plan)])

    assert code == 1
    assert "[connect]" in caplog.text


def test_bad_db_uri_exits_nonzero_for_index_audit(cli_env, monkeypatch, caplog):
    monkeypatch.setenv("DB_URI", "mongodb://host:notaport")
    with caplog.at_level(logging.ERROR):
        assert main_module.main_indexes([]) == 1
    assert "[connect]" in caplog.text
