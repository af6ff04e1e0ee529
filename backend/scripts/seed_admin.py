"""Create the local schema and an administrator account for development."""

from __future__ import annotations

import asyncio
import os

from tourdesk.core.config import get_settings
from tourdesk.core.security import CredentialStore
from tourdesk.db.session import create_schema, dispose_engine, get_sessionmaker
from tourdesk.models import UserRole
from tourdesk.services import user_service

EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@tourdesk.dev")
PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin12345")


async def main() -> None:
    settings = get_settings()
    await create_schema(settings.database_url)
    sessionmaker = get_sessionmaker(settings.database_url)
    try:
        async with sessionmaker() as session:
            if await user_service.get_user_by_email(session, EMAIL):
                print(f"User {EMAIL} already exists")
                return
            await user_service.create_user(
                session,
                CredentialStore(settings),
                name="Dev Admin",
                email=EMAIL,
                password=PASSWORD,
                role=UserRole.ADMIN,
            )
            print(f"Created admin {EMAIL} / {PASSWORD}")
    finally:
        await dispose_engine(settings.database_url)


if __name__ == "__main__":
    asyncio.run(main())
