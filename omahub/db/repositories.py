"""Repository helpers for favourites, catalog entities and platform settings."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from omahub.models.brand import Brand
from omahub.models.catalogue import Catalogue
from omahub.models.favourite import Favourite
from omahub.models.platform_setting import PlatformSetting
from omahub.models.product import Product


@dataclass(slots=True)
class FavouriteInsert:
    """Payload used to insert a user favourite record."""

    user_id: str
    item_id: str
    item_type: str


def _is_postgresql(session: AsyncSession) -> bool:
    return session.get_bind().dialect.name == "postgresql"


async def _find_favourite(
    session: AsyncSession, *, user_id: str, item_id: str, item_type: str
) -> Favourite | None:
    stmt = (
        select(Favourite)
        .where(Favourite.user_id == user_id)
        .where(Favourite.item_id == item_id)
        .where(Favourite.item_type == item_type)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def insert_favourite(
    session: AsyncSession, row: FavouriteInsert
) -> Favourite | None:
    """Insert a favourite, returning ``None`` when the triple already exists."""

    if _is_postgresql(session):
        stmt = (
            pg_insert(Favourite)
            .values(user_id=row.user_id, item_id=row.item_id, item_type=row.item_type)
            .on_conflict_do_nothing(constraint="uq_favourites_user_item")
            .returning(Favourite.id)
        )
        inserted_id = (await session.execute(stmt)).scalar_one_or_none()
        await session.commit()
        if inserted_id is None:
            return None
        return await session.get(Favourite, inserted_id)

    existing = await _find_favourite(
        session, user_id=row.user_id, item_id=row.item_id, item_type=row.item_type
    )
    if existing is not None:
        return None

    favourite = Favourite(
        user_id=row.user_id, item_id=row.item_id, item_type=row.item_type
    )
    session.add(favourite)
    try:
        await session.commit()
    except IntegrityError:
        # a concurrent request inserted the same triple first
        await session.rollback()
        return None
    await session.refresh(favourite)
    return favourite


async def get_favourite(
    session: AsyncSession, *, user_id: str, item_id: str, item_type: str
) -> Favourite | None:
    """Fetch the caller's favourite for one item, if any."""

    return await _find_favourite(
        session, user_id=user_id, item_id=item_id, item_type=item_type
    )


async def fetch_favourites(
    session: AsyncSession,
    *,
    user_id: str,
    limit: int | None = None,
) -> list[Favourite]:
    """Fetch a user's favourites, newest first."""

    stmt = (
        select(Favourite)
        .where(Favourite.user_id == user_id)
        .order_by(Favourite.created_at.desc(), Favourite.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_favourite(
    session: AsyncSession, *, user_id: str, item_id: str, item_type: str
) -> bool:
    """Delete the caller's favourite for one item; ``True`` if a row went away."""

    stmt = (
        delete(Favourite)
        .where(Favourite.user_id == user_id)
        .where(Favourite.item_id == item_id)
        .where(Favourite.item_type == item_type)
    )
    result = await session.execute(stmt)
    await session.commit()
    return (result.rowcount or 0) > 0


async def fetch_brand(session: AsyncSession, item_id: str) -> Brand | None:
    return await session.get(Brand, item_id)


async def fetch_catalogue(session: AsyncSession, item_id: str) -> Catalogue | None:
    return await session.get(Catalogue, item_id)


async def fetch_product(session: AsyncSession, item_id: str) -> Product | None:
    """Fetch a product together with its brand."""

    stmt = (
        select(Product)
        .options(joinedload(Product.brand))
        .where(Product.id == item_id)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_orphaned_favourites(
    session: AsyncSession, *, limit: int = 500
) -> list[Favourite]:
    """Fetch favourites whose referenced brand, catalogue or product is gone."""

    brand_exists = select(Brand.id).where(Brand.id == Favourite.item_id).exists()
    catalogue_exists = (
        select(Catalogue.id).where(Catalogue.id == Favourite.item_id).exists()
    )
    product_exists = select(Product.id).where(Product.id == Favourite.item_id).exists()

    stmt = (
        select(Favourite)
        .where(
            or_(
                and_(Favourite.item_type == "brand", ~brand_exists),
                and_(Favourite.item_type == "catalogue", ~catalogue_exists),
                and_(Favourite.item_type == "product", ~product_exists),
            )
        )
        .order_by(Favourite.created_at.asc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_favourites_by_ids(session: AsyncSession, ids: list[str]) -> int:
    """Delete favourites by primary key."""

    if not ids:
        return 0

    result = await session.execute(delete(Favourite).where(Favourite.id.in_(ids)))
    await session.commit()
    return result.rowcount or 0


async def fetch_platform_settings(
    session: AsyncSession, keys: list[str]
) -> dict[str, str]:
    """Fetch raw setting values for the given keys."""

    if not keys:
        return {}

    stmt = select(PlatformSetting.key, PlatformSetting.value).where(
        PlatformSetting.key.in_(keys)
    )
    rows = (await session.execute(stmt)).all()
    return {key: value for key, value in rows}


async def upsert_platform_settings(
    session: AsyncSession, values: dict[str, str]
) -> None:
    """Insert or overwrite setting values keyed by name."""

    if not values:
        return

    if _is_postgresql(session):
        stmt = pg_insert(PlatformSetting).values(
            [{"key": key, "value": value} for key, value in values.items()]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PlatformSetting.key],
            set_={"value": stmt.excluded.value, "updated_at": func.now()},
        )
        await session.execute(stmt)
        await session.commit()
        return

    for key, value in values.items():
        setting = await session.get(PlatformSetting, key)
        if setting is None:
            session.add(PlatformSetting(key=key, value=value))
        else:
            setting.value = value
    await session.commit()
