"""Run one ingestion pass from the command line (same as the cron endpoint)."""

import sys
import pathlib
import asyncio

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from app.core.config import settings
from app.core.db import SessionLocal, create_all_tables
from app.core.logging import setup_logging
from app.services.ingestion import run_ingestion


async def main() -> int:
    setup_logging()
    await create_all_tables()
    async with SessionLocal() as session:
        outcome = await run_ingestion(session, settings)

    failed = 0
    for result in outcome.results:
        if result.status == "success":
            print(f"✅ {result.store_name}: {result.total_reviews} fetched, {result.new_reviews} new")
        else:
            failed += 1
            print(f"❌ {result.store_name}: {result.error}")
    print(f"{outcome.message}: {outcome.total_new_reviews} new review(s), {failed} failed store(s)")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
