"""Production tracker database management CLI.

Creates and drops the SQL schema of the production domain using the
setup_db/drop_db utilities in ``production.utils.db``.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from production.domain import production
    from production.utils.db import setup_db

    print("Initializing production domain...")
    production.init()
    print("Creating production database schema...")
    setup_db(production)
    print("Done.")


def drop_database():
    from production.domain import production
    from production.utils.db import drop_db

    print("Initializing production domain...")
    production.init()
    print("Dropping production database schema...")
    drop_db(production)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Production tracker database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
