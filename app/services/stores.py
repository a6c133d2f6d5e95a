"""Store bootstrap, seeding and name corrections."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Brand, Store


@dataclass(frozen=True, slots=True)
class StoreSeed:
    name: str
    brand: Brand
    place_id: str | None
    google_maps_url: str | None
    store_type: str = "DIRECT"


def _place_url(place_id: str) -> str:
    return f"https://www.google.com/maps/place/?q=place_id:{place_id}"


DEFAULT_STORES: tuple[StoreSeed, ...] = (
    StoreSeed("アメモバ 上野本店", Brand.AMEMOBA, "ChIJG_0V74WNGGARNcOjkwixJuQ", _place_url("ChIJG_0V74WNGGARNcOjkwixJuQ")),
    StoreSeed("アメモバ 秋葉原店", Brand.AMEMOBA, "ChIJFQAwsZ-OGGARfGHc4VvmyLA", _place_url("ChIJFQAwsZ-OGGARfGHc4VvmyLA")),
    StoreSeed("アメモバ 柏店", Brand.AMEMOBA, "ChIJhyb1RRmdGGARKhISBfOIFhI", _place_url("ChIJhyb1RRmdGGARKhISBfOIFhI")),
    StoreSeed("アメモバ 名古屋大須店", Brand.AMEMOBA, "ChIJHYp3Shd3A2ARONqCexsG5ew", _place_url("ChIJHYp3Shd3A2ARONqCexsG5ew")),
    StoreSeed("アメモバ 新宿東南口店", Brand.AMEMOBA, "ChIJM_kPEBiNGGAR1jbcaf_pwpo", _place_url("ChIJM_kPEBiNGGAR1jbcaf_pwpo")),
    StoreSeed("アメモバ 大宮マルイ店", Brand.AMEMOBA, "ChIJn-qyhX6dGGARAFfE-Mv4UOU", _place_url("ChIJn-qyhX6dGGARAFfE-Mv4UOU")),
    StoreSeed("サクモバ 秋葉原店", Brand.SAKUMOBA, "ChIJiS1phZ6PGGARWW9Q51UQcRk", "https://maps.app.goo.gl/5syqmR83eYHR1Sy77"),
    StoreSeed("サクモバ 新宿西口店", Brand.SAKUMOBA, "ChIJy97SMKGNGGARHCW4cTVFLtw", "https://maps.app.goo.gl/T3ua72862GeWfFdJ6"),
    StoreSeed("サクモバ 名古屋大須店", Brand.SAKUMOBA, "ChIJdfabEGd3A2ARPStzxMd5OJE", "https://maps.app.goo.gl/CgynoAtxgwVYP3UR9"),
)

# Historical display names -> current ones.
STORE_RENAMES: tuple[tuple[str, str], ...] = (
    ("アメモバ買取 上野店", "アメモバ 上野本店"),
    ("アメモバ買取 東京上野本店", "アメモバ 上野本店"),
    ("アメモバ買取 上野本店", "アメモバ 上野本店"),
    ("アメモバ買取 秋葉原店", "アメモバ 秋葉原店"),
    ("アメモバ買取 柏店", "アメモバ 柏店"),
    ("アメモバ買取 名古屋大須店", "アメモバ 名古屋大須店"),
    ("アメモバ買取 新宿東南口店", "アメモバ 新宿東南口店"),
    ("アメモバ買取 大宮マルイ店", "アメモバ 大宮マルイ店"),
    ("サクモバ 東京秋葉原店", "サクモバ 秋葉原店"),
)


async def list_stores(session: AsyncSession) -> list[Store]:
    rows = await session.execute(select(Store).order_by(Store.name, Store.id))
    return list(rows.scalars().all())


async def seed_stores(
    session: AsyncSession, seeds: tuple[StoreSeed, ...] | list[StoreSeed] = DEFAULT_STORES
) -> tuple[int, int]:
    """Create every seed whose exact name is not present yet.

    Returns ``(created, skipped)``. Commits once at the end.
    """

    existing = set((await session.execute(select(Store.name))).scalars().all())
    created = skipped = 0
    for seed in seeds:
        if seed.name in existing:
            skipped += 1
            continue
        session.add(
            Store(
                name=seed.name,
                brand=Brand(seed.brand).value,
                store_type=seed.store_type,
                place_id=seed.place_id,
                google_maps_url=seed.google_maps_url,
            )
        )
        existing.add(seed.name)
        created += 1
    await session.commit()
    logger.bind(created=created, skipped=skipped).info("stores_seeded")
    return created, skipped


async def ensure_stores(
    session: AsyncSession, seeds: tuple[StoreSeed, ...] | list[StoreSeed] = DEFAULT_STORES
) -> list[Store]:
    """Seed the built-in list when the store table is empty, then list stores."""

    count = (await session.execute(select(func.count(Store.id)))).scalar_one()
    if count == 0:
        logger.bind(seeds=len(seeds)).info("stores_bootstrap")
        await seed_stores(session, seeds)
    return await list_stores(session)


async def apply_store_renames(
    session: AsyncSession, renames: tuple[tuple[str, str], ...] = STORE_RENAMES
) -> list[tuple[str, str, int]]:
    """Rename stores whose name matches exactly; safe to run repeatedly."""

    applied: list[tuple[str, str, int]] = []
    for old_name, new_name in renames:
        if old_name == new_name:
            continue
        result = await session.execute(
            update(Store).where(Store.name == old_name).values(name=new_name)
        )
        if result.rowcount:
            applied.append((old_name, new_name, result.rowcount))
            logger.bind(old=old_name, new=new_name, count=result.rowcount).info("store_renamed")
    await session.commit()
    return applied
