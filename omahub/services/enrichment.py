"""Resolve favourite references into display-ready items.

Each ``item_type`` has exactly one resolver registered in :data:`RESOLVERS`.
A resolver loads the referenced row and projects its display fields; it
returns ``None`` when the row no longer exists so the caller can drop the
favourite instead of emitting a partial item.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from omahub.db.repositories import fetch_brand, fetch_catalogue, fetch_product
from omahub.models.favourite import Favourite

EnrichedItem = dict[str, object]
Resolver = Callable[[AsyncSession, Favourite], Awaitable[EnrichedItem | None]]


def _as_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _base_fields(favourite: Favourite) -> EnrichedItem:
    return {
        "id": favourite.item_id,
        "item_type": favourite.item_type,
        "favourite_id": favourite.id,
        "created_at": favourite.created_at.isoformat()
        if favourite.created_at
        else None,
    }


async def resolve_brand(
    session: AsyncSession, favourite: Favourite
) -> EnrichedItem | None:
    brand = await fetch_brand(session, favourite.item_id)
    if brand is None:
        return None

    return {
        **_base_fields(favourite),
        "name": brand.name,
        "image": brand.image,
        "category": brand.category,
        "location": brand.location,
        "is_verified": brand.is_verified,
        "rating": _as_float(brand.rating),
    }


async def resolve_catalogue(
    session: AsyncSession, favourite: Favourite
) -> EnrichedItem | None:
    catalogue = await fetch_catalogue(session, favourite.item_id)
    if catalogue is None:
        return None

    return {
        **_base_fields(favourite),
        "title": catalogue.title,
        "image": catalogue.image,
        "brand_id": catalogue.brand_id,
        "description": catalogue.description,
    }


async def resolve_product(
    session: AsyncSession, favourite: Favourite
) -> EnrichedItem | None:
    product = await fetch_product(session, favourite.item_id)
    if product is None:
        return None

    brand = product.brand
    effective_price = (
        product.sale_price if product.sale_price is not None else product.price
    )
    return {
        **_base_fields(favourite),
        "title": product.title,
        "image": product.image,
        "brand_id": product.brand_id,
        "price": _as_float(effective_price),
        "sale_price": _as_float(product.sale_price),
        "category": product.category,
        "brand": {
            "id": brand.id,
            "name": brand.name,
            "location": brand.location,
            "price_range": brand.price_range,
            "currency": brand.currency,
        }
        if brand is not None
        else None,
    }


RESOLVERS: dict[str, Resolver] = {
    "brand": resolve_brand,
    "catalogue": resolve_catalogue,
    "product": resolve_product,
}
