"""Procurement management CLI.

Schema management for relational providers, and the scheduler entry point
that closes bidding on RFQs past their deadline.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py close-expired-bidding    # Close overdue RFQs now
    python src/manage.py close-expired-bidding --as-of 2025-01-10T09:00:00+00:00
"""

import argparse
import sys
from datetime import datetime


def _domain():
    from procurement.domain import procurement

    procurement.init()
    return procurement


def setup_database():
    from procurement.utils.db import setup_db

    domain = _domain()
    print("Creating procurement database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from procurement.utils.db import drop_db

    domain = _domain()
    print("Dropping procurement database schema...")
    drop_db(domain)
    print("Done.")


def close_expired_bidding(as_of=None):
    from procurement.rfq.closing import CloseExpiredBidding

    domain = _domain()
    with domain.domain_context():
        closed = domain.process(CloseExpiredBidding(as_of=as_of), asynchronous=False)

    for rfq_id in closed:
        print(f"  closed RFQ {rfq_id}")
    print(f"Closed {len(closed)} RFQ(s).")


def main():
    parser = argparse.ArgumentParser(description="Procurement management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    close_parser = subparsers.add_parser("close-expired-bidding", help="Close every open RFQ past its deadline")
    close_parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="ISO-8601 moment to compare deadlines against (default: now)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "close-expired-bidding":
        close_expired_bidding(args.as_of)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
