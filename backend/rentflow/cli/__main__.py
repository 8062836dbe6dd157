# backend/rentflow/cli/__main__.py
from __future__ import annotations

import argparse

from rentflow.config import settings
from rentflow.db import init_db
from rentflow.services.payments import sign


def main() -> None:
    p = argparse.ArgumentParser(prog="rentflow")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create all tables on DATABASE_URL")

    s = sub.add_parser("sign-event", help="print the webhook signature for a payment event")
    s.add_argument("--event-id", required=True)
    s.add_argument("--request-id", required=True, type=int)
    s.add_argument("--amount", required=True, type=float)

    args = p.parse_args()

    if args.command == "init-db":
        init_db()
        print({"ok": True, "database_url": settings.database_url})
    elif args.command == "sign-event":
        print(sign(args.event_id, args.request_id, args.amount))


if __name__ == "__main__":
    main()
