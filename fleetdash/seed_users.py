"""
Database seeding script for the default roles and administrator.

Creates ADMIN, DISPECER, MANAGER, RIDIC and USER roles and the built-in
administrator account. Run this script after the database is set up but
before first use:

    python -m fleetdash.seed_users
"""

import asyncio

from fleetdash.app.core.config import settings
from fleetdash.app.db.session import AsyncSessionLocal, engine, Base
from fleetdash.app.services.seed import seed_defaults

# Registers every table with Base
import fleetdash.app.main  # noqa: F401


async def seed_users():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")
        created = await seed_defaults(db)

    for name in created["roles"]:
        print(f"✅ Created role {name}")
    if created["users"]:
        print(f"✅ Created administrator ({settings.protected_admin_email})")

    if not created["roles"] and not created["users"]:
        print("ℹ️  Defaults already present, nothing to do")
    else:
        print("\n🎉 Seeding completed successfully!")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_users())
