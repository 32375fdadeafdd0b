# backend/decembrrr/clients/ledger_rpc.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..config import Settings
from ..errors import (
    AppError,
    ConfigurationError,
    ErrorCode,
    NetworkError,
    RecordFailed,
    resolve_error,
)
from ..schemas import DeductionRunResult, RollbackResult, StudentLookup

log = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


class LedgerRpcClient:
    """
    Remote ledger authority: balance-mutating procedures exposed as
    POST {base}/rest/v1/rpc/<name>.

    Financial calls are never retried here. A failed call surfaces to the caller.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str],
        api_key: Optional[str],
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout_seconds
        self.transport = transport

    @classmethod
    def from_settings(cls, s: Settings, *, transport: Optional[httpx.BaseTransport] = None) -> "LedgerRpcClient":
        return cls(
            base_url=s.ledger_rpc_url,
            api_key=s.ledger_rpc_key,
            timeout_seconds=s.ledger_rpc_timeout_seconds,
            transport=transport,
        )

    def enabled(self) -> bool:
        return bool(self.base and self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _require_config(self) -> None:
        if not self.base:
            raise ConfigurationError("LEDGER_RPC_URL is not set", code=ErrorCode.BACKEND_URL_MISSING)
        if not self.api_key:
            raise ConfigurationError("LEDGER_RPC_KEY is not set", code=ErrorCode.BACKEND_KEY_MISSING)

    def call(self, name: str, params: dict[str, Any]) -> Any:
        self._require_config()
        url = f"{self.base}/rest/v1/rpc/{name}"

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.post(url, json=params, headers=self._headers())
        except httpx.TimeoutException as e:
            log.error("rpc_timeout", extra={"detail": f"{name}: {e}"})
            raise NetworkError(f"{name} timed out after {self.timeout}s", code=ErrorCode.BACKEND_UNREACHABLE) from e
        except httpx.TransportError as e:
            log.error("rpc_unreachable", extra={"detail": f"{name}: {e}"})
            raise resolve_error(e) from e

        if r.status_code >= 400:
            body = r.text[:500]
            log.error("rpc_failed", extra={"detail": f"{name} {r.status_code}: {body}"})
            err = resolve_error(Exception(body))
            if type(err) is AppError:
                err = RecordFailed(f"{name} returned {r.status_code}: {body}")
            raise err

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            body = r.text[:500]
            log.error("rpc_bad_body", extra={"detail": f"{name} {r.status_code}: {body}"})
            raise RecordFailed(f"{name} returned a non-JSON body: {body}") from e

    def _validate(self, name: str, model: type[_M], data: Any) -> _M:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            log.error("rpc_bad_body", extra={"detail": f"{name}: {e}"})
            raise RecordFailed(f"{name} returned an unexpected body: {data!r}") from e

    # -----------------------------
    # Procedures
    # -----------------------------
    def run_daily_deduction(self, target_date: date) -> DeductionRunResult:
        data = self.call("run_daily_deduction", {"target_date": target_date.isoformat()})
        body = data if isinstance(data, dict) else {"result": data}
        body.setdefault("target_date", target_date)
        return self._validate("run_daily_deduction", DeductionRunResult, body)

    def rollback_no_class_date(self, class_id: int, target_date: date) -> RollbackResult:
        data = self.call(
            "rollback_no_class_date",
            {"p_class_id": class_id, "p_date": target_date.isoformat()},
        )
        if isinstance(data, list):
            data = data[0] if data else {}
        if data is None:
            data = {}
        if isinstance(data, dict) and "rolled_back" not in data and "rolled_back_count" in data:
            data = dict(data)
            data["rolled_back"] = data["rolled_back_count"]
        return self._validate("rollback_no_class_date", RollbackResult, data)

    def lookup_student(self, student_id: int) -> StudentLookup:
        data = self.call("lookup_student", {"p_student_id": student_id})
        if isinstance(data, list):
            data = data[0] if data else {"found": False}
        return self._validate("lookup_student", StudentLookup, data or {"found": False})
