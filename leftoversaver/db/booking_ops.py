"""
LeftoverSaver — Booking transactor with optimistic locking
"""
import logging
import secrets
import string

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leftoversaver.core.errors import BookingNotFound, OfferNotFound, SoldOut
from leftoversaver.core.optimistic_lock import StaleDataError, with_optimistic_retry
from leftoversaver.models.booking import Booking, BookingStatus
from leftoversaver.models.offer import Offer
from leftoversaver.schemas.booking import BookingSnapshot

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
MISSING_STOCK_DEFAULT = 1


def generate_confirmation_code() -> str:
    """Short pickup code. Not guaranteed unique across bookings."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def _new_booking(offer_id: str, user_id: str, snapshot: BookingSnapshot, paid: bool) -> Booking:
    return Booking(
        offer_id=offer_id,
        offer_name=snapshot.name,
        price_cents=snapshot.price_cents,
        currency=snapshot.currency,
        pickup_until=snapshot.pickup_until,
        uid=user_id,
        paid=paid,
        code=generate_confirmation_code(),
        status=BookingStatus.ACTIVE,
    )


@with_optimistic_retry()
async def book_paid(
    db: AsyncSession,
    offer_id: str,
    user_id: str,
    snapshot: BookingSnapshot,
) -> Booking:
    """
    Atomically take one unit of stock and record a paid booking.

    The version_id column acts as the conflict detector:
      - READ:  fetch current stock + version_id
      - WRITE: UPDATE WHERE version_id = <read_version>
      - If another transaction committed first → StaleDataError → retry

    The stock decrement and the booking insert commit together or not at all.
    """
    result = await db.execute(
        select(Offer).where(Offer.id == offer_id).execution_options(populate_existing=True)
    )
    offer: Offer | None = result.scalar_one_or_none()

    if offer is None:
        await db.rollback()
        raise OfferNotFound(offer_id)

    current_stock = offer.stock if offer.stock is not None else MISSING_STOCK_DEFAULT
    if current_stock <= 0:
        await db.rollback()
        raise SoldOut(offer_id)

    current_version = offer.version_id
    result = await db.execute(
        update(Offer)
        .where(Offer.id == offer_id, Offer.version_id == current_version)
        .values(stock=current_stock - 1, version_id=current_version + 1)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        # Another transaction won the race → trigger retry
        await db.rollback()
        raise StaleDataError("Optimistic lock conflict: offer version changed concurrently.")

    booking = _new_booking(offer_id, user_id, snapshot, paid=True)
    db.add(booking)
    await db.commit()
    await db.refresh(booking)

    logger.info(
        "Paid booking %s for offer %s by %s (stock %d -> %d)",
        booking.id, offer_id, user_id, current_stock, current_stock - 1,
    )
    return booking


async def book_unpaid(
    db: AsyncSession,
    offer_id: str,
    user_id: str,
    snapshot: BookingSnapshot,
) -> Booking:
    """
    Record an unpaid booking. Stock is neither checked nor decremented;
    non-payment is settled later, outside this service.
    """
    booking = _new_booking(offer_id, user_id, snapshot, paid=False)
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    logger.info("Unpaid booking %s for offer %s by %s", booking.id, offer_id, user_id)
    return booking


async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


async def cancel_booking(db: AsyncSession, booking_id: str) -> Booking:
    """
    Move a booking to CANCELLED. Cancelling an already cancelled booking is a
    no-op. The offer's stock is NOT restored.
    """
    booking = await get_booking(db, booking_id)
    if booking.status == BookingStatus.CANCELLED:
        return booking

    await db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == BookingStatus.ACTIVE)
        .values(status=BookingStatus.CANCELLED)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s cancelled", booking_id)
    return booking


async def list_user_bookings(db: AsyncSession, user_id: str) -> list[Booking]:
    """All bookings of a user, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.uid == user_id)
        .order_by(Booking.created_at.desc())
    )
    return list(result.scalars().all())
