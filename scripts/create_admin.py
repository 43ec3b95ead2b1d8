#!/usr/bin/env python3
"""
Create the first admin account.

Usage:
    python scripts/create_admin.py --email admin@example.com --name "Office Admin"

The password is read from the prompt unless --password is given.
"""

import asyncio
import getpass
import sys
from pathlib import Path

# Make the project root importable when run as a plain script
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.core.auth.models import UserRole
from src.core.auth.service import AuthService
from src.core.config import settings
from src.core.database.session import async_session
from src.core.exceptions import DuplicateError


async def create_admin(email: str, full_name: str, password: str) -> None:
    async with async_session() as session:
        service = AuthService(session)
        user = await service.create_user(
            email=email,
            password=password,
            full_name=full_name,
            role=UserRole.ADMIN,
        )
        await session.commit()
        print(f"Created admin {user.email} (id={user.id})")


async def main():
    """Parse arguments and create the account."""
    import argparse

    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--name", required=True, help="Full name")
    parser.add_argument("--password", help="Password (prompted when omitted)")

    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    print(f"Environment: {settings.app_env}")
    try:
        await create_admin(args.email, args.name, password)
    except DuplicateError as e:
        print(f"Not created: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
