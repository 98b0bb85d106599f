"""Seed script for populating development users without raw SQL."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

# Ensure project root is on PYTHONPATH when running as a script.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from dealership.core.config import settings
from dealership.db.session_async import AsyncSessionLocal
from dealership.schemas.user import UserCreate
from dealership.services import user_service


@dataclass(frozen=True, slots=True)
class DevUser:
    email: str
    first_name: str
    last_name: str
    password: str
    is_superuser: bool = False
    city: str | None = None
    country: str | None = None
    address: str | None = None


DEV_USERS: tuple[DevUser, ...] = (
    DevUser(
        email="admin.dev@example.com",
        first_name="Dev",
        last_name="Admin",
        password="AdminDev123!",
        is_superuser=True,
    ),
    DevUser(
        email="customer1.dev@example.com",
        first_name="Nimal",
        last_name="Perera",
        password="UserDev123!",
        address="12 Galle Road",
        city="Colombo",
        country="Sri Lanka",
    ),
    DevUser(
        email="customer2.dev@example.com",
        first_name="Ayesha",
        last_name="Fernando",
        password="UserDev123!",
        address="45 Temple Street",
        city="Kandy",
        country="Sri Lanka",
    ),
)


async def seed_dev_users() -> None:
    """Insert or update development users in the configured database."""
    logger = logging.getLogger("seed_dev_users")
    logger.info("Seeding development users into %s", settings.ASYNC_DATABASE_URL)

    created = 0
    updated = 0
    skipped = 0

    async with AsyncSessionLocal() as session:
        for dev_user in DEV_USERS:
            existing = await user_service.get_by_email(session, dev_user.email)

            if existing:
                if dev_user.is_superuser and not existing.is_superuser:
                    existing.is_superuser = True
                    session.add(existing)
                    updated += 1
                    logger.debug("Promoted existing user %s", dev_user.email)
                else:
                    skipped += 1
                    logger.debug("Skipped user %s (already up to date)", dev_user.email)
                continue

            user_in = UserCreate(
                email=dev_user.email,
                first_name=dev_user.first_name,
                last_name=dev_user.last_name,
                password=dev_user.password,
                address=dev_user.address,
                city=dev_user.city,
                country=dev_user.country,
            )
            await user_service.create_user(session, user_in, is_superuser=dev_user.is_superuser)
            created += 1
            logger.debug("Created user %s", dev_user.email)

        await session.commit()

    logger.info(
        "Seed completed: %s created, %s updated, %s skipped",
        created,
        updated,
        skipped,
    )


async def main() -> None:
    await seed_dev_users()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
