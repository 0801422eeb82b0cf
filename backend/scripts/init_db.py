"""
Initialize the database: create the users table and seed the demo accounts.
Run with: python -m scripts.init_db
"""

import asyncio
from sensore.config import get_settings
from sensore.database import engine, Base
from sensore.main import seed_demo_users
from sensore.models import User  # noqa: F401


async def init():
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully.")
    if get_settings().seed_demo_users:
        await seed_demo_users()
        print("Demo accounts ready.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init())
