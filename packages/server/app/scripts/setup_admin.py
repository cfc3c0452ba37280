"""
Create an admin account, or promote an existing one.

    python -m app.scripts.setup_admin --email admin@example.com --password secret
"""

import argparse
import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import Database
from app.models.profile import Profile
from app.models.user import User
from app.services.profiles import create_account
from chipchat_shared.schemas.common import UserRole

DEFAULT_FULL_NAME = "Admin User"


async def ensure_admin(session: AsyncSession, email: str, password: str, full_name: str) -> Profile:
    """Create an approved, verified admin; an existing account is promoted instead."""
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        _, profile = await create_account(
            session,
            email=email,
            password=password,
            full_name=full_name,
            role=UserRole.ADMIN,
            approved=True,
        )
        print(f"Created admin account: {email}")
        return profile

    profile = await session.get(Profile, user.id)
    if profile is None:
        profile = Profile(id=user.id, email=email, full_name=full_name)
        print(f"User {email} had no profile; creating one.")
    profile.full_name = full_name
    profile.role = UserRole.ADMIN.value
    profile.is_approved = True
    profile.is_verified = True
    session.add(profile)
    await session.flush()
    print(f"Promoted existing user {email} to admin.")
    return profile


async def setup_admin(
    email: str, password: str, full_name: str, *, database_url: Optional[str] = None, init_db: bool = False
) -> None:
    database = Database(database_url or get_settings().database_url)
    try:
        if init_db:
            await database.init_models()
        async with database.session() as session:
            await ensure_admin(session, email, password, full_name)
        print("Done.")
    finally:
        await database.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create or promote an admin user.")
    parser.add_argument("--email", required=True, help="Email address for the admin")
    parser.add_argument("--password", required=True, help="Password (ignored when promoting)")
    parser.add_argument("--full-name", default=DEFAULT_FULL_NAME, help="Display name")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables first (development)")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    asyncio.run(setup_admin(args.email, args.password, args.full_name, init_db=args.init_db))


if __name__ == "__main__":
    main()
