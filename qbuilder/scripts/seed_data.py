"""
Seed the default professions and optionally promote a user to admin.

    python -m qbuilder.scripts.seed_data
    ADMIN_EMAIL=owner@builder.co.il python -m qbuilder.scripts.seed_data
"""
from qbuilder.models.users.user_models import User
from qbuilder.core.db import AsyncSessionLocal
from qbuilder.services.catalog.profession_service import seed_professions
from sqlalchemy import select
import asyncio
import os


async def seed():
    async with AsyncSessionLocal() as session:
        result = await seed_professions(session)
        print(f"Professions: {result['created']} created, {result['existing']} already present")

        admin_email = os.getenv("ADMIN_EMAIL")
        if not admin_email:
            return

        user = await session.scalar(select(User).where(User.email == admin_email.lower()))
        if not user:
            print(f"No user with email {admin_email}; register first")
            return

        user.role = "admin"
        await session.commit()
        print(f"{user.email} is now an admin")


if __name__ == "__main__":
    asyncio.run(seed())
