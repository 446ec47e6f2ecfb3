"""
LeftoverSaver — Offers API routes
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from leftoversaver.db.database import get_db
from leftoversaver.models.offer import Offer, Store
from leftoversaver.schemas.offer import OfferCreate, OfferOut, RankedOfferOut, StockOut
from leftoversaver.services.money import money
from leftoversaver.services.ranking import Coordinate, OfferFilters, parse_distance_threshold, rank
from leftoversaver.core.redis_client import get_redis, stock_cache_key
from leftoversaver.core.config import get_settings
from leftoversaver.core.security import get_current_user_id

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/offers", tags=["offers"])


async def _load_offer(db: AsyncSession, offer_id: str) -> Offer:
    result = await db.execute(
        select(Offer)
        .options(selectinload(Offer.store))
        .where(Offer.id == offer_id)
        .execution_options(populate_existing=True)
    )
    offer = result.scalar_one_or_none()
    if offer is None:
        raise HTTPException(status_code=404, detail="Offer not found.")
    return offer


@router.get("", response_model=list[RankedOfferOut])
async def list_offers(
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    max_distance_km: str | None = Query(None, description="Non-numeric values disable the filter"),
    pickup_after: str | None = Query(None),
    category: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Offers nearest-first around (lat, lng), filtered."""
    result = await db.execute(
        select(Offer).options(selectinload(Offer.store)).order_by(Offer.name.asc())
    )
    offers = [OfferOut.model_validate(o) for o in result.scalars().all()]

    origin = Coordinate(lat, lng) if lat is not None and lng is not None else None
    filters = OfferFilters(
        max_distance_km=parse_distance_threshold(max_distance_km),
        pickup_after=pickup_after or None,
        category=category or None,
    )

    return [
        RankedOfferOut(
            **r.offer.model_dump(),
            distance_km=round(r.distance_km, 1) if r.distance_km is not None else None,
            price_display=money(r.offer.price_cents, r.offer.currency, settings.DISPLAY_LOCALE),
        )
        for r in rank(offers, origin, filters)
    ]


@router.post("", response_model=OfferOut, status_code=status.HTTP_201_CREATED)
async def create_offer(
    payload: OfferCreate,
    uid: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Publish a new offer for the caller's store."""
    store = await db.get(Store, uid)
    offer = Offer(
        name=payload.name,
        price_cents=payload.price_cents,
        currency=payload.currency or settings.DEFAULT_CURRENCY,
        pickup_until=payload.pickup_until,
        stock=payload.stock,
        categories=payload.categories,
        image_url=payload.image_url,
        lat=payload.lat,
        lng=payload.lng,
        owner_uid=uid,
        store_id=store.id if store is not None else None,
    )
    db.add(offer)
    await db.commit()
    logger.info("Offer %s created by %s (stock=%d)", offer.id, uid, payload.stock)

    return OfferOut.model_validate(await _load_offer(db, offer.id))


@router.get("/{offer_id}", response_model=OfferOut)
async def get_offer(offer_id: str, db: AsyncSession = Depends(get_db)):
    return OfferOut.model_validate(await _load_offer(db, offer_id))


@router.get("/{offer_id}/stock", response_model=StockOut)
async def get_stock(offer_id: str, db: AsyncSession = Depends(get_db)):
    """Remaining stock for an offer. Served from Redis when warm; warms it otherwise."""
    redis = get_redis()
    cache_key = stock_cache_key(offer_id)

    cached = await redis.get(cache_key)
    if cached is not None:
        try:
            return StockOut(offer_id=offer_id, stock=int(cached), cached=True)
        except ValueError:
            logger.warning("Discarding malformed stock cache entry %s=%r", cache_key, cached)

    result = await db.execute(select(Offer.stock).where(Offer.id == offer_id))
    row = result.one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail="Offer not found.")

    stock = row[0]
    if stock is not None:
        await redis.setex(cache_key, settings.STOCK_CACHE_TTL_SECONDS, stock)
    return StockOut(offer_id=offer_id, stock=stock)
