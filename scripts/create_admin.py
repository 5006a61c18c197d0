"""
Create an admin (print station owner) account.

Run from project root:
  python scripts/create_admin.py --email admin@example.com --password Secret123 --name "Main Station"

Without arguments the defaults below are used. Tables are created if missing.
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from print_station.database import SessionLocal, init_db
from print_station.errors import Conflict
from print_station.services.credentials import register_admin

DEFAULT_EMAIL = "admin@printstation.local"
DEFAULT_PASSWORD = "Admin12345"
DEFAULT_NAME = "Station Admin"


def main():
    parser = argparse.ArgumentParser(description="Create a Printer Station admin account")
    parser.add_argument("--email", default=DEFAULT_EMAIL)
    parser.add_argument("--password", default=DEFAULT_PASSWORD)
    parser.add_argument("--name", default=DEFAULT_NAME)
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        admin = register_admin(db, email=args.email, password=args.password, name=args.name)
    except Conflict:
        print(f"Admin already exists: {args.email}")
        return
    finally:
        db.close()
    print(f"Created admin id={admin.id}: {admin.email}")
    print(f"  password: {args.password}")


if __name__ == "__main__":
    main()
