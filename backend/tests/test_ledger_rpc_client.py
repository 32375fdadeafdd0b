# backend/tests/test_ledger_rpc_client.py
from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from decembrrr.clients.ledger_rpc import LedgerRpcClient
from decembrrr.errors import AuthError, ConfigurationError, ErrorCode, NetworkError, RecordFailed


def _client(handler, **kw) -> LedgerRpcClient:
    return LedgerRpcClient(
        base_url=kw.get("base_url", "https://ledger.example.test/"),
        api_key=kw.get("api_key", "service-key"),
        transport=httpx.MockTransport(handler),
    )


def test_rollback_posts_to_rpc_endpoint():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["apikey"] = request.headers.get("apikey")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "ok", "rolled_back": 3})

    res = _client(handler).rollback_no_class_date(9, date(2024, 12, 4))
    assert res.rolled_back == 3
    assert seen["path"] == "/rest/v1/rpc/rollback_no_class_date"
    assert seen["apikey"] == "service-key"
    assert seen["body"] == {"p_class_id": 9, "p_date": "2024-12-04"}


def test_rollback_accepts_count_alias_and_list_shape():
    def handler(request):
        return httpx.Response(200, json=[{"status": "ok", "rolled_back_count": 2}])

    assert _client(handler).rollback_no_class_date(1, date(2024, 12, 4)).rolled_back == 2


def test_run_daily_deduction_sends_target_date():
    def handler(request):
        body = json.loads(request.content)
        assert body == {"target_date": "2024-12-03"}
        return httpx.Response(200, json={"status": "ok", "deducted": 18, "skipped": 2})

    res = _client(handler).run_daily_deduction(date(2024, 12, 3))
    assert res.target_date == date(2024, 12, 3)
    assert (res.deducted, res.skipped) == (18, 2)


def test_lookup_student():
    def handler(request):
        return httpx.Response(200, json={"found": True, "in_class": True, "id": 5, "name": "Ana", "balance": 30})

    res = _client(handler).lookup_student(5)
    assert res.found and res.in_class and res.name == "Ana"


def test_missing_configuration_is_a_configuration_error():
    def handler(request):  # pragma: no cover
        raise AssertionError("no request expected")

    with pytest.raises(ConfigurationError) as e:
        _client(handler, base_url=None).run_daily_deduction(date(2024, 12, 3))
    assert e.value.code == ErrorCode.BACKEND_URL_MISSING

    with pytest.raises(ConfigurationError) as e:
        _client(handler, api_key=None).run_daily_deduction(date(2024, 12, 3))
    assert e.value.code == ErrorCode.BACKEND_KEY_MISSING


def test_http_failures_are_typed():
    def server_error(request):
        return httpx.Response(500, text="internal")

    def rls(request):
        return httpx.Response(403, json={"message": "new row violates row-level security policy"})

    def expired(request):
        return httpx.Response(401, json={"message": "JWT expired"})

    with pytest.raises(RecordFailed):
        _client(server_error).rollback_no_class_date(1, date(2024, 12, 4))
    with pytest.raises(RecordFailed):
        _client(rls).rollback_no_class_date(1, date(2024, 12, 4))
    with pytest.raises(AuthError):
        _client(expired).rollback_no_class_date(1, date(2024, 12, 4))


def test_transport_failures_are_network_errors_and_not_retried():
    calls = []

    def refused(request):
        calls.append(1)
        raise httpx.ConnectError("connection refused", request=request)

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(NetworkError):
        _client(refused).run_daily_deduction(date(2024, 12, 3))
    assert len(calls) == 1

    with pytest.raises(NetworkError) as e:
        _client(slow).run_daily_deduction(date(2024, 12, 3))
    assert e.value.code == ErrorCode.BACKEND_UNREACHABLE


def test_non_json_success_body_is_a_record_failure():
    def gateway(request):
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(RecordFailed) as e:
        _client(gateway).rollback_no_class_date(1, date(2024, 12, 4))
    assert "gateway" in e.value.detail


def test_malformed_bodies_are_record_failures():
    def negative(request):
        return httpx.Response(200, json={"status": "ok", "rolled_back": -1})

    def nameless(request):
        return httpx.Response(200, json={"name": "Ana"})

    def wrong_date(request):
        return httpx.Response(200, json={"target_date": "yesterday"})

    with pytest.raises(RecordFailed):
        _client(negative).rollback_no_class_date(1, date(2024, 12, 4))
    with pytest.raises(RecordFailed):
        _client(nameless).lookup_student(5)
    with pytest.raises(RecordFailed):
        _client(wrong_date).run_daily_deduction(date(2024, 12, 3))
