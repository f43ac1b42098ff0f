"""
Promote an existing account to admin.

The account must already exist (sign in through the app first).

Example:
  python scripts/set_admin.py someone@nwu.edu.bd
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_db_client

logger = logging.getLogger(__name__)


def promote(db: DbClient, email: str) -> bool:
    user = db.get_user_by_email(email)
    if not user:
        logger.error("User not found: %s. Sign up in the app first.", email)
        return False
    logger.info("Found %s (status=%s, role=%s)", email, user.status, user.role)
    user.status = "admin"
    user.role = "admin"
    db.save_user(user)
    logger.info("%s is now an admin", email)
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Promote a user to admin")
    parser.add_argument("email", help="Email of the account to promote")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    return 0 if promote(get_db_client(), args.email) else 1


if __name__ == "__main__":
    sys.exit(main())
