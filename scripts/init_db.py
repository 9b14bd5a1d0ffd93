#!/usr/bin/env python3
"""
Initialize the inventory database.
Creates all tables and loads the starter categories, suppliers and administrator.
"""

import sys
from pathlib import Path

# Allow running from project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from inventory_api.config import get_settings
from inventory_api.database import build_engine, init_db, make_session_factory
from inventory_api.services.bootstrap import seed_initial_data


def main():
    settings = get_settings()
    print("Initializing database...")
    print(f"  DATABASE_URL: {settings.DATABASE_URL[:40]}...")
    print(f"  Environment: {settings.ENVIRONMENT}")

    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)

    with make_session_factory(engine)() as session:
        added = seed_initial_data(session, settings)

    print("Database initialized successfully.")
    print(
        f"Seeded {added['categories']} categories, {added['suppliers']} suppliers, "
        f"{added['users']} administrator(s)."
    )


if __name__ == "__main__":
    main()
