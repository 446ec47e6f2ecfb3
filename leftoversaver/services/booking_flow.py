"""
LeftoverSaver — Booking workflow

  1. Load the offer and snapshot the fields shown on the booking
  2. Wait for the payment outcome
  3. Paid     → atomic stock decrement + paid booking
     Declined → unpaid booking, stock untouched
  4. Invalidate the cached stock figure for the offer
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leftoversaver.core.config import get_settings
from leftoversaver.core.errors import OfferNotFound
from leftoversaver.core.redis_client import get_redis, stock_cache_key
from leftoversaver.db.booking_ops import book_paid, book_unpaid
from leftoversaver.models.booking import Booking
from leftoversaver.models.offer import Offer
from leftoversaver.schemas.booking import BookingSnapshot
from leftoversaver.services.payment import PaymentBroker, PaymentOutcome

settings = get_settings()
logger = logging.getLogger(__name__)


async def load_snapshot(db: AsyncSession, offer_id: str) -> BookingSnapshot:
    result = await db.execute(select(Offer).where(Offer.id == offer_id))
    offer = result.scalar_one_or_none()
    if offer is None:
        raise OfferNotFound(offer_id)
    snapshot = BookingSnapshot.from_offer(offer, default_currency=settings.DEFAULT_CURRENCY)
    # release the read before the payment wait
    await db.rollback()
    return snapshot


async def invalidate_stock_cache(offer_id: str) -> None:
    try:
        await get_redis().delete(stock_cache_key(offer_id))
    except Exception as exc:
        # cache maintenance must not fail a committed booking
        logger.warning("Stock cache invalidation failed for %s: %s", offer_id, exc)


async def book_offer(
    db: AsyncSession,
    broker: PaymentBroker,
    offer_id: str,
    user_id: str,
    payment_reference: str,
) -> Booking:
    snapshot = await load_snapshot(db, offer_id)

    outcome = await broker.collect(payment_reference)
    if outcome is PaymentOutcome.PAID:
        booking = await book_paid(db, offer_id, user_id, snapshot)
        await invalidate_stock_cache(offer_id)
    else:
        booking = await book_unpaid(db, offer_id, user_id, snapshot)
    return booking
