#!/usr/bin/env python3
"""
Create an agency account and print an access token for it.

Usage:
    python -m scripts.create_user --email agency@example.com --name "Agency"
    python -m scripts.create_user --email agency@example.com --init-db
"""
import argparse
import asyncio
from typing import Optional

from sqlalchemy import select

from inmodash.auth.utils import create_access_token
from inmodash.database import async_session_maker, init_db
from inmodash.data.models import User


async def run(email: str, name: Optional[str], create_tables: bool) -> None:
    if create_tables:
        await init_db()

    async with async_session_maker() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(email=email, name=name)
            db.add(user)
            await db.commit()
            print(f"Created user {user.id} ({email})")
        else:
            print(f"User {user.id} already exists")

        print(create_access_token(user.id, user.email))


def main():
    parser = argparse.ArgumentParser(description="Create an agency account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name")
    parser.add_argument("--init-db", action="store_true", help="Create tables first")
    args = parser.parse_args()
    asyncio.run(run(args.email, args.name, args.init_db))


if __name__ == "__main__":
    main()
