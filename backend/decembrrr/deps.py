# backend/decembrrr/deps.py
from __future__ import annotations

from fastapi import Request

from .clients.ledger_rpc import LedgerRpcClient
from .config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger_rpc(request: Request) -> LedgerRpcClient:
    """The one RPC handle built at startup; tests swap it via dependency_overrides."""
    return request.app.state.ledger_rpc
