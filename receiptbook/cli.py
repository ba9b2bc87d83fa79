#!/usr/bin/env python3
"""
Receipt book (SQLite)

Commands:
  init                Create/migrate the database and seed default settings
  profile             Show the business profile, or set it with --name/--phone
  receipts            List receipts, newest first
  show                Print one receipt as share text
  usage               Print this month's receipt usage against the limit
  serve               Run the local HTTP API (uvicorn)
"""
from __future__ import annotations

import argparse
import json
import sys

from .db import Storage
from .domain.receipt_math import format_currency, format_date, format_receipt_text
from .errors import ReceiptbookError, StorageIOError, ValidationError
from .logs import configure_logging
from .migrations import ensure_schema
from .models import BusinessProfile
from .services import profile_svc, receipt_svc, usage_svc
from .services.settings_svc import ensure_default_settings


def _storage(args) -> Storage:
    storage = Storage(args.db) if args.db else Storage.from_config()
    ensure_schema(storage)
    return storage


def cmd_init(args):
    storage = Storage(args.db) if args.db else Storage.from_config()
    report = ensure_schema(storage)
    ensure_default_settings(storage)
    print(f"DB ready (schema v{report['version']}, applied={report['applied']}, failed={report['failed']}).")


def cmd_profile(args):
    storage = _storage(args)
    if args.name or args.phone:
        current = profile_svc.get_business_profile(storage)
        p = BusinessProfile(
            name=args.name or (current.name if current else ""),
            phone=args.phone or (current.phone if current else ""),
            address=args.address if args.address is not None else (current.address if current else None),
            cac_number=args.cac if args.cac is not None else (current.cac_number if current else None),
            website_uri=args.website if args.website is not None else (current.website_uri if current else None),
            custom_footer=args.footer if args.footer is not None else (current.custom_footer if current else None),
            logo_uri=current.logo_uri if current else None,
        )
        profile_svc.save_business_profile(storage, p)
    p = profile_svc.get_business_profile(storage)
    print(json.dumps(p.to_dict() if p else None, ensure_ascii=False, indent=2))


def cmd_receipts(args):
    storage = _storage(args)
    for r in receipt_svc.get_all_receipts(storage):
        status = r.payment_status.value if r.payment_status else "-"
        print(f"{r.id:>5}  {r.receipt_number:<24} {format_date(r.created_at)}  "
              f"{format_currency(r.total):>14}  {status:<9} {r.customer_name or ''}")


def cmd_show(args):
    storage = _storage(args)
    r = receipt_svc.get_receipt_by_id(storage, args.id)
    if r is None:
        raise SystemExit(f"Receipt {args.id} not found")
    p = profile_svc.get_business_profile(storage)
    if p is None:
        raise SystemExit("Set up the business profile first (receiptbook profile --name ... --phone ...)")
    print(format_receipt_text(r, p))


def cmd_usage(args):
    storage = _storage(args)
    print(json.dumps(usage_svc.get_usage(storage), indent=2))


def cmd_serve(args):
    import os
    import uvicorn
    if args.db:
        os.environ["RECEIPTBOOK_DB_PATH"] = args.db
    uvicorn.run("receiptbook.api:app", host=args.host, port=args.port)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Local receipt book (SQLite)")
    ap.add_argument("--db", help="path to the SQLite file (default: config.yaml / RECEIPTBOOK_DB_PATH)")
    ap.add_argument("--log-level", default="WARNING")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init").set_defaults(func=cmd_init)

    p = sub.add_parser("profile")
    p.add_argument("--name")
    p.add_argument("--phone")
    p.add_argument("--address")
    p.add_argument("--cac")
    p.add_argument("--website")
    p.add_argument("--footer")
    p.set_defaults(func=cmd_profile)

    sub.add_parser("receipts").set_defaults(func=cmd_receipts)

    p = sub.add_parser("show")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_show)

    sub.add_parser("usage").set_defaults(func=cmd_usage)

    p = sub.add_parser("serve")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)

    args = ap.parse_args(argv)
    configure_logging(args.log_level)
    try:
        args.func(args)
    except ValidationError as e:
        print(f"[ERROR] {e.field}: {e.message}", file=sys.stderr)
        return 2
    except StorageIOError:
        print("[ERROR] failed to save, try again", file=sys.stderr)
        return 1
    except ReceiptbookError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
