"""Grant or revoke the administrator flag on an identity's profile.

Usage:
    python scripts/promote_admin.py owner@example.com
    python scripts/promote_admin.py owner@example.com --revoke
"""
import argparse
import asyncio
import sys

from sqlalchemy import select

from portfolio.database import async_session_maker, close_db
from portfolio.kernel.models import Profile, User


async def set_admin(email: str, is_admin: bool) -> bool:
    async with async_session_maker() as session:
        result = await session.execute(
            select(Profile).join(User, User.id == Profile.id).where(User.email == email.strip().lower())
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            return False
        profile.is_admin = is_admin
        await session.commit()
        return True


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true", help="remove the flag instead of setting it")
    args = parser.parse_args(argv)

    try:
        found = await set_admin(args.email, not args.revoke)
    finally:
        await close_db()

    if not found:
        print(f"No identity registered as {args.email}")
        return 1
    print(f"{args.email}: is_admin={not args.revoke}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
