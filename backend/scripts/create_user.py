"""
Insert (or reset) an OR Stock login.
Run with: python -m scripts.create_user or01 secret --display "Nurse A" --role operator
"""

import argparse
import asyncio
from sqlalchemy import select
from orstock.database import engine, Base, async_session
from orstock.models.user import User


async def create_user(username: str, password: str, display: str, role: str) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        user = await session.scalar(select(User).where(User.username == username))
        if user:
            print(f"User '{username}' exists, updating password/display/role.")
        else:
            user = User(username=username, extra={})
            session.add(user)
        user.password = password
        user.display = display
        user.role = role
        await session.commit()
    print(f"User '{username}' ({role}) saved.")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or update an OR Stock user")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--display", default=None, help="Name shown in the UI and in lastUpdatedBy")
    parser.add_argument(
        "--role",
        default="operator",
        help="admin and operator may edit stock; any other role is read-only",
    )
    args = parser.parse_args()

    asyncio.run(create_user(args.username, args.password, args.display or args.username, args.role))
