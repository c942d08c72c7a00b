"""
Database seeding script for initial users.

Creates one user per role for testing and development.
Admin and manager accounts cannot self-register, so this is how they are made.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from inventory_backend.app.db.session import AsyncSessionLocal, engine, Base
from inventory_backend.app.models.user import User
from inventory_backend.app.models.enums import Role
from inventory_backend.app.services.users import get_user_by_email, save_user

# Registers every table with Base.metadata
import inventory_backend.app.main  # noqa: F401

SEED_USERS = [
    ("Admin", "admin@inventory.com", "admin123", Role.ADMIN),
    ("Manager", "manager@inventory.com", "manager123", Role.MANAGER),
    ("Employee", "employee@inventory.com", "employee123", Role.EMPLOYEE),
    ("Customer", "customer@inventory.com", "customer123", Role.CUSTOMER),
]


async def seed_users():
    """
    Seed initial users with different roles.

    Existing emails are left untouched, so the script can be re-run.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting user seeding...")

        for name, email, password, role in SEED_USERS:
            if await get_user_by_email(db, email):
                print(f"  {role.value} user {email} already exists, skipping")
                continue

            await save_user(db, User(name=name, email=email, role=role), password=password)
            print(f"  Created {role.value} user ({email} / {password})")

        print("User seeding completed.")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_users())
