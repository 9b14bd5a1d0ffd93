"""
One-time script to create an administrator.
Run from the project root:

    python scripts/create_admin.py

You will be prompted for name, email and password.
"""

import getpass
import os
import sys

# Make sure the project root is on the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from inventory_api.config import get_settings
from inventory_api.database import build_engine, init_db, make_session_factory
from inventory_api.models.users import ROLE_ADMIN, ROLE_EMPLOYEE
from inventory_api.services.users import UserService


def main():
    settings = get_settings()
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)

    with make_session_factory(engine)() as db:
        print("\n── Supermarket Inventory · Create User ──\n")

        email = input("Email: ").strip()
        if not email:
            print("Email cannot be empty.")
            return

        users = UserService(db)
        existing = users.find_by_email(email)
        if existing:
            print(f"User {email} already exists (role: {existing.role}).")
            return

        password = getpass.getpass("Password (min 6 chars): ").strip()
        if len(password) < 6:
            print("Password too short.")
            return

        name = input("Name: ").strip() or "Administrator"

        role = input(f"Role [{ROLE_ADMIN} / {ROLE_EMPLOYEE}] (default: {ROLE_ADMIN}): ").strip()
        if role not in (ROLE_ADMIN, ROLE_EMPLOYEE):
            role = ROLE_ADMIN

        user = users.create_user(name, email, password, role)
        print(f"\n✓ User created: {user.email} (role: {user.role}, id: {user.id})\n")


if __name__ == "__main__":
    main()
