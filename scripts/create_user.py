#!/usr/bin/env python3
"""
Provision a user (student or instructor). Registration is not exposed over HTTP.

Run: python scripts/create_user.py instructor@example.com secret --role instructor --name "Ada Lovelace"
     python scripts/create_user.py student@example.com secret
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an LMS user.")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help="Initial password")
    parser.add_argument("--role", choices=["student", "instructor"], default="student")
    parser.add_argument("--name", default=None, help="Full name shown on dashboards")
    args = parser.parse_args()

    from lms.config import SessionLocal, create_db
    from lms.utils.auth import create_user, get_user_by_email

    create_db()
    db = SessionLocal()
    try:
        if get_user_by_email(args.email, db):
            print(f"User already exists: {args.email}", file=sys.stderr)
            return 1
        user = create_user(args.email, args.password, db, role=args.role, full_name=args.name)
        print(f"Created {user.role} id={user.id} email={user.email}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
