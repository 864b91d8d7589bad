"""
Create the users and lockers tables on DATABASE_URL.
Run with: python -m scripts.init_db [--reset]

--reset drops both tables first, wiping every login and stock table.
"""

import argparse
import asyncio
from orstock.database import engine, Base
from orstock.models import User, Locker  # noqa: F401


async def init(reset: bool = False) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            print("Dropped existing tables.")
        await conn.run_sync(Base.metadata.create_all)
    print(f"Ready: {', '.join(sorted(Base.metadata.tables))} on {engine.url.render_as_string(hide_password=True)}")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the OR Stock tables")
    parser.add_argument("--reset", action="store_true", help="Drop users and lockers before creating them")
    args = parser.parse_args()

    asyncio.run(init(reset=args.reset))
