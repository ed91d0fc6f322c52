"""IMS management CLI.

Creates and drops the database schema and runs the reservation expiry sweep.
Meant to be called by deployment tooling and by an external scheduler.

Usage:
    python src/manage.py setup-db              # Create all tables
    python src/manage.py drop-db               # Drop all tables
    python src/manage.py expire-reservations   # Expire overdue reservations
"""

import argparse
import sys
from datetime import datetime


def setup_database():
    """Create the IMS database schema."""
    from ims.domain import ims
    from ims.utils.db import setup_db

    print("Initializing ims domain...")
    ims.init()
    print("Creating ims database schema...")
    setup_db(ims)
    print("Done.")


def drop_database():
    """Drop the IMS database schema."""
    from ims.domain import ims
    from ims.utils.db import drop_db

    print("Initializing ims domain...")
    ims.init()
    print("Dropping ims database schema...")
    drop_db(ims)
    print("Done.")


def expire_reservations(as_of=None, warning_minutes=None):
    """Run one expiry sweep and report the counts."""
    from ims.domain import ims
    from ims.reservation.expiry import sweep_reservations

    ims.init()
    with ims.domain_context():
        summary = sweep_reservations(as_of=as_of, warning_minutes=warning_minutes)
    print(f"Expired: {summary.expired}  Failed: {summary.failed}  Expiring soon: {summary.expiring}")
    return summary


def main():
    parser = argparse.ArgumentParser(description="IMS management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    expire_parser = subparsers.add_parser("expire-reservations", help="Expire overdue reservations")
    expire_parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Treat this ISO-8601 instant as now (default: current time)",
    )
    expire_parser.add_argument(
        "--warning-minutes",
        type=int,
        default=None,
        help="Warn about reservations expiring within this many minutes",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "expire-reservations":
        summary = expire_reservations(args.as_of, args.warning_minutes)
        if summary.failed:
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
