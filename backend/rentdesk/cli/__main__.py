# backend/rentdesk/cli/__main__.py
from __future__ import annotations

import argparse

from rentdesk.cli.seed_demo import seed_demo
from rentdesk.db import init_db


def main() -> None:
    p = argparse.ArgumentParser(prog="rentdesk")
    sub = p.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed-demo", help="admin user + small demo portfolio")
    seed.add_argument("--user-email", default="admin@rentdesk.local")
    seed.add_argument("--password", default="rentdesk")
    seed.add_argument("--no-portfolio", action="store_true")

    sub.add_parser("init-db", help="create tables from the ORM metadata")

    args = p.parse_args()

    if args.command == "init-db":
        init_db()
        print({"ok": True, "command": "init-db"})
        return

    out = seed_demo(
        user_email=args.user_email,
        password=args.password,
        with_portfolio=(not args.no_portfolio),
    )
    print(
        {
            "ok": True,
            "user_email": out.user_email,
            "property_ids": out.property_ids,
            "contract_id": out.contract_id,
        }
    )


if __name__ == "__main__":
    main()
