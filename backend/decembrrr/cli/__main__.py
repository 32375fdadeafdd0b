# backend/decembrrr/cli/__main__.py
from __future__ import annotations

import argparse
import json
from datetime import date

from decembrrr.clients.ledger_rpc import LedgerRpcClient
from decembrrr.config import settings
from decembrrr.db import Base, build_engine, build_session_factory
from decembrrr.logging_config import configure_logging
from decembrrr.services.deduction_job import run_daily_deduction
from decembrrr.cli.seed_demo import seed_demo


def _run_deduction(args: argparse.Namespace) -> dict:
    rpc = LedgerRpcClient.from_settings(settings)
    target = date.fromisoformat(args.date) if args.date else None
    result = run_daily_deduction(rpc, tz_name=settings.deduction_timezone, target_date=target)
    return {"ok": True, **result.model_dump(mode="json")}


def _seed(args: argparse.Namespace) -> dict:
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()
    try:
        out = seed_demo(
            db,
            class_name=args.class_name,
            start=date.fromisoformat(args.start) if args.start else None,
            days=args.days,
        )
    finally:
        db.close()
    return {
        "ok": True,
        "class_id": out.class_id,
        "invite_code": out.invite_code,
        "members": out.members,
        "deposits": out.deposits,
    }


def main() -> None:
    p = argparse.ArgumentParser(prog="decembrrr")
    sub = p.add_subparsers(dest="command", required=True)

    rd = sub.add_parser("run-deduction", help="trigger the daily deduction for one date")
    rd.add_argument("--date", default=None, help="YYYY-MM-DD; defaults to today in DEDUCTION_TIMEZONE")
    rd.set_defaults(func=_run_deduction)

    sd = sub.add_parser("seed-demo", help="create a demo class with members and deposits")
    sd.add_argument("--class-name", default="Demo Class")
    sd.add_argument("--start", default=None)
    sd.add_argument("--days", type=int, default=14)
    sd.set_defaults(func=_seed)

    args = p.parse_args()
    configure_logging()
    print(json.dumps(args.func(args), default=str))


if __name__ == "__main__":
    main()
