"""
Grant the admin role to an existing account.

Operational tool run against the database directly; the API has no route for
changing roles.

    python promote_admin.py someone@example.com
"""

import argparse
import logging
import sys
from datetime import datetime, timezone

from pymongo.database import Database

import database

logger = logging.getLogger("promote_admin")


def promote(db: Database, email: str) -> bool:
    result = db["user"].update_one(
        {"email": email.lower()},
        {"$set": {"role": "admin", "updated_at": datetime.now(timezone.utc)}},
    )
    return result.matched_count > 0


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("email", help="email of the account to promote")
    args = parser.parse_args(argv)

    if database.db is None:
        logger.error("DATABASE_URL is not set")
        return 1
    if not promote(database.db, args.email):
        logger.error("User not found: %s", args.email)
        return 1
    logger.info("User role updated to admin: %s", args.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
