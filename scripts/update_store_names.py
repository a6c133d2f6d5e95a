"""Rename stores still carrying one of their historical display names."""

import sys
import pathlib
import asyncio

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from app.core.db import SessionLocal
from app.services.stores import STORE_RENAMES, apply_store_renames


async def main():
    async with SessionLocal() as session:
        applied = await apply_store_renames(session, STORE_RENAMES)
    if not applied:
        print("Nothing to rename")
        return
    for old_name, new_name, count in applied:
        print(f"✅ {old_name} -> {new_name} ({count} row(s))")


if __name__ == "__main__":
    asyncio.run(main())
