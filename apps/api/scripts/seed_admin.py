"""
Seed Admin User

Creates the first administrator account for the back office.
Credentials are read from the environment, never hard-coded.

Usage:
    cd apps/api
    SEED_ADMIN_EMAIL=... SEED_ADMIN_PASSWORD=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.database import async_session_maker, close_db, init_db  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.modules.statuses.service import seed_default_statuses  # noqa: E402
from app.modules.users.models import UserRole  # noqa: E402
from app.modules.users.repository import UserRepository  # noqa: E402


async def seed_admin() -> int:
    """Create the admin user if it doesn't exist. Returns a process exit code."""
    email = os.getenv("SEED_ADMIN_EMAIL")
    password = os.getenv("SEED_ADMIN_PASSWORD")
    first_name = os.getenv("SEED_ADMIN_FIRST_NAME")
    last_name = os.getenv("SEED_ADMIN_LAST_NAME")

    if not email or not password:
        print("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")
        return 1
    if len(password) < 8:
        print("SEED_ADMIN_PASSWORD must be at least 8 characters")
        return 1

    await init_db()

    async with async_session_maker() as db:
        await seed_default_statuses(db)

        existing_user = await UserRepository.get_by_email(db, email)
        if existing_user:
            print(f"Admin already exists: {existing_user.email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return 0

        admin_user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN,
        )
        await db.commit()

        print("Admin created successfully!")
        print(f"  Email: {admin_user.email}")
        print(f"  ID: {admin_user.id}")
        print(f"  Role: {admin_user.role.value}")

    await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
