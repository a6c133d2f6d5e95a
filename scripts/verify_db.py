import sys, pathlib, asyncio
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from sqlalchemy import func, select, text
from app.core.db import SessionLocal
from app.models import FetchLog, Review, Store

async def main():
    async with SessionLocal() as s:
        one = await s.execute(text("SELECT 1"))
        print("db-ping:", one.scalar())

        for model in (Store, Review, FetchLog):
            count = await s.execute(select(func.count()).select_from(model))
            print(f"{model.__tablename__}:", count.scalar())

        latest = await s.execute(
            select(FetchLog.status, FetchLog.completed_at).order_by(FetchLog.started_at.desc()).limit(1)
        )
        print("last-fetch:", latest.first())

asyncio.run(main())
