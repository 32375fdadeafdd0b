# backend/tests/test_errors.py
from __future__ import annotations

import httpx
from sqlalchemy.exc import IntegrityError, OperationalError

from decembrrr.errors import (
    AppError,
    AuthError,
    ClassNotFound,
    DuplicateExceptionError,
    ErrorCode,
    NetworkError,
    RecordFailed,
    resolve_error,
)


def test_payload_hides_detail_by_default():
    err = ClassNotFound("class 42 not found")
    body = err.to_payload()
    assert body["error"]["code"] == ErrorCode.CLASS_NOT_FOUND
    assert body["error"]["message"]
    assert "detail" not in body["error"]
    assert err.to_payload(include_detail=True)["error"]["detail"] == "class 42 not found"
    assert err.status_code == 404


def test_duplicate_date_maps_from_unique_violation():
    exc = IntegrityError(
        "INSERT INTO no_class_dates ...",
        {},
        Exception("UNIQUE constraint failed: no_class_dates.class_id, no_class_dates.date"),
    )
    err = resolve_error(exc)
    assert isinstance(err, DuplicateExceptionError)
    assert err.code == "ERR_5001"
    assert err.status_code == 409


def test_other_database_errors_are_record_failures_with_detail():
    err = resolve_error(OperationalError("INSERT INTO transactions", {}, Exception("disk I/O error")))
    assert isinstance(err, RecordFailed)
    assert "disk I/O error" in err.detail


def test_transport_errors_are_network_errors():
    err = resolve_error(httpx.ConnectError("connection refused"))
    assert isinstance(err, NetworkError)
    assert err.code == ErrorCode.NETWORK_ERROR


def test_message_patterns():
    assert isinstance(resolve_error(Exception("JWT expired")), AuthError)
    assert resolve_error(Exception("JWT expired")).code == ErrorCode.AUTH_SESSION_EXPIRED
    assert isinstance(resolve_error(Exception('new row violates row-level security policy for table "transactions"')), RecordFailed)


def test_unknown_keeps_detail_and_app_errors_pass_through():
    err = resolve_error(RuntimeError("boom"))
    assert type(err) is AppError
    assert err.code == ErrorCode.UNKNOWN
    assert err.detail == "boom"

    original = ClassNotFound()
    assert resolve_error(original) is original
