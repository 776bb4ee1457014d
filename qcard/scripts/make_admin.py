#!/usr/bin/env python3
"""
Promote a user to ADMIN (or SUPER_ADMIN).

Usage:
    python scripts/make_admin.py --email someone@example.com
    python scripts/make_admin.py --email someone@example.com --super

Exit Codes:
    0: Role updated
    1: User not found
"""

import argparse
import sys
from pathlib import Path

# Add apps/api to path so qcard_api imports resolve.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "apps" / "api"))

from qcard_api.db.enums import UserRole  # noqa: E402
from qcard_api.db.session import SessionLocal  # noqa: E402
from qcard_api.errors import NotFoundError  # noqa: E402
from qcard_api.services.accounts import set_user_role  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Promote a user to an admin role")
    parser.add_argument("--email", required=True, help="Email of the user to promote")
    parser.add_argument("--super", dest="super_admin", action="store_true", help="Grant SUPER_ADMIN instead of ADMIN")
    args = parser.parse_args(argv)

    role = UserRole.SUPER_ADMIN if args.super_admin else UserRole.ADMIN
    db = SessionLocal()
    try:
        user = set_user_role(db, args.email, role)
    except NotFoundError as e:
        print(f"ERROR: {e.detail}")
        return 1
    finally:
        db.close()

    print(f"OK: {user.email} is now {user.role}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
