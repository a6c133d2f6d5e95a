"""Create the built-in stores that are missing from the store table."""

import sys
import pathlib
import asyncio

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from app.core.db import SessionLocal, create_all_tables
from app.services.stores import DEFAULT_STORES, list_stores, seed_stores


async def main():
    await create_all_tables()
    async with SessionLocal() as session:
        created, skipped = await seed_stores(session, DEFAULT_STORES)
        print(f"✅ Stores seeded: {created} created, {skipped} already present")
        for store in await list_stores(session):
            print(f"   - [{store.brand}] {store.name} ({store.id})")


if __name__ == "__main__":
    asyncio.run(main())
