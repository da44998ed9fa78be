"""
Create the tables and seed the first admin user.

Idempotent. The admin is only created when SEED_ADMIN_EMAIL and
SEED_ADMIN_PASSWORD are set and no user with that email exists.

Usage: python -m app.db.init_db
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

import app.core.models  # noqa: F401
from app.auth.models import User
from app.auth.security import hash_password
from app.core.config import Settings, settings
from app.core.enums import UserRole
from app.core.logging_config import setup_logging
from app.db.session import Base, build_engine, build_sessionmaker

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_admin(db: AsyncSession, app_settings: Settings) -> bool:
    """Returns True when a new admin was created."""
    email = (app_settings.seed_admin_email or "").strip().lower()
    password = app_settings.seed_admin_password
    if not email or not password:
        logger.info("SEED_ADMIN_EMAIL/SEED_ADMIN_PASSWORD not set; skipping admin seed.")
        return False

    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        logger.info("Admin %s already exists.", email)
        return False

    db.add(
        User(
            name=app_settings.seed_admin_name,
            email=email,
            role=UserRole.ADMIN.value,
            password_hash=hash_password(password),
        )
    )
    await db.commit()
    logger.info("Created admin %s.", email)
    return True


async def init_db(app_settings: Settings = settings) -> None:
    engine = build_engine(app_settings.database_url)
    try:
        await create_tables(engine)
        async with build_sessionmaker(engine)() as db:
            await seed_admin(db, app_settings)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging(settings.log_level)
    asyncio.run(init_db())
