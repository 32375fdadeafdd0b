# backend/tests/test_deduction_job.py
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from conftest import FakeLedgerRpc
from decembrrr.errors import NetworkError
from decembrrr.services.deduction_job import deduction_target_date, run_daily_deduction
from decembrrr.workers import tasks


def test_target_date_is_today_in_the_deduction_zone():
    # 17:00 UTC on Dec 2 is already 01:00 on Dec 3 in Manila
    now = datetime(2024, 12, 2, 17, 0, tzinfo=timezone.utc)
    assert deduction_target_date("Asia/Manila", now) == date(2024, 12, 3)
    assert deduction_target_date("UTC", now) == date(2024, 12, 2)


def test_naive_now_is_read_as_utc():
    assert deduction_target_date("Asia/Manila", datetime(2024, 12, 2, 17, 0)) == date(2024, 12, 3)


def test_run_sends_the_computed_target():
    rpc = FakeLedgerRpc()
    res = run_daily_deduction(rpc, tz_name="Asia/Manila", now=datetime(2024, 12, 2, 10, 0))
    assert rpc.calls == [("run_daily_deduction", date(2024, 12, 2))]
    assert res.target_date == date(2024, 12, 2)


def test_explicit_target_wins():
    rpc = FakeLedgerRpc()
    run_daily_deduction(rpc, tz_name="Asia/Manila", target_date=date(2024, 11, 29))
    assert rpc.calls == [("run_daily_deduction", date(2024, 11, 29))]


def test_failures_are_reraised():
    rpc = FakeLedgerRpc(fail=NetworkError("connection refused"))
    with pytest.raises(NetworkError):
        run_daily_deduction(rpc, tz_name="UTC", target_date=date(2024, 12, 3))
    assert len(rpc.calls) == 1


def test_celery_task_parses_date_and_returns_json(monkeypatch):
    rpc = FakeLedgerRpc()

    class _Factory:
        @staticmethod
        def from_settings(_settings):
            return rpc

    monkeypatch.setattr(tasks, "LedgerRpcClient", _Factory)
    out = tasks.run_daily_deduction.run("2024-12-03")

    assert rpc.calls == [("run_daily_deduction", date(2024, 12, 3))]
    assert out["target_date"] == "2024-12-03"
    assert out["status"] == "ok"
