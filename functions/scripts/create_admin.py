"""
CLI helper to bootstrap the first admin account.

User management goes through the admin-only functions, so somebody has to
exist before anybody can be created. This script does the same work as the
create-user function with the service-role key, skipping the caller check.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from eventdesk.db import ProfileRecord
from eventdesk.dependencies import get_admin_auth_client, get_db_client
from eventdesk.errors import EventDeskError
from shared.constants import MIN_PASSWORD_LENGTH
from shared.types import Role

logger = logging.getLogger("create_admin")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument(
        "--password",
        required=True,
        help=f"Initial password (at least {MIN_PASSWORD_LENGTH} characters)",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    if len(args.password) < MIN_PASSWORD_LENGTH:
        parser.error(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

    auth = get_admin_auth_client()
    db = get_db_client()
    try:
        user = auth.admin_create_user(args.email.strip(), args.password, args.name.strip())
        db.create_profile(
            ProfileRecord(user_id=user.id, name=args.name.strip(), email=args.email.strip())
        )
        db.set_role(user.id, Role.ADMIN)
    except EventDeskError as exc:
        logger.error("Could not create admin: %s", exc.message)
        return 1

    logger.info("Created admin %s (%s)", user.id, args.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
