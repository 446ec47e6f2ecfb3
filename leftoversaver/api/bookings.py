"""
LeftoverSaver — Booking and payment routes

Flow for POST /offers/{offer_id}/bookings:
  1. JWT validated by middleware (request.state.user set)
  2. Request parks until POST /payments/{reference} reports the outcome
  3. Paid → atomic stock decrement + booking; declined → unpaid booking
  4. Booking returned with its pickup code
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from leftoversaver.db.database import get_db
from leftoversaver.db.booking_ops import cancel_booking, get_booking, list_user_bookings
from leftoversaver.core.errors import NotFound, SoldOut, TransientConflict
from leftoversaver.core.config import get_settings
from leftoversaver.core.security import get_current_user_id
from leftoversaver.models.booking import Booking
from leftoversaver.schemas.booking import BookingOut, BookingRequest, PaymentResult
from leftoversaver.services.booking_flow import book_offer
from leftoversaver.services.money import money
from leftoversaver.services.payment import (
    PaymentAlreadyPending,
    PaymentAlreadyResolved,
    PaymentBroker,
    PaymentOutcome,
    get_payment_broker,
)

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(tags=["bookings"])


def _out(booking: Booking) -> BookingOut:
    out = BookingOut.model_validate(booking)
    out.price_display = money(booking.price_cents, booking.currency, settings.DISPLAY_LOCALE)
    return out


@router.post(
    "/offers/{offer_id}/bookings",
    response_model=BookingOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    offer_id: str,
    payload: BookingRequest,
    uid: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    broker: PaymentBroker = Depends(get_payment_broker),
):
    """
    Book one unit of an offer. Waits for the payment outcome; a declined or
    timed-out payment still yields a booking, flagged unpaid.
    """
    try:
        booking = await book_offer(db, broker, offer_id, uid, payload.payment_reference)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SoldOut as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (PaymentAlreadyPending, PaymentAlreadyResolved) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TransientConflict as e:
        logger.warning("Booking for offer %s gave up: %s", offer_id, e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Offer is busy, please retry.",
            headers={"Retry-After": "1"},
        )
    return _out(booking)


@router.get("/bookings", response_model=list[BookingOut])
async def my_bookings(uid: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    """The caller's bookings, newest first."""
    return [_out(b) for b in await list_user_bookings(db, uid)]


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
async def cancel(
    booking_id: str,
    uid: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking. Repeating the call is harmless. Stock is not given back."""
    try:
        booking = await get_booking(db, booking_id)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if booking.uid != uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your booking.")

    return _out(await cancel_booking(db, booking_id))


@router.post("/payments/{reference}", status_code=status.HTTP_202_ACCEPTED)
async def report_payment(
    reference: str,
    payload: PaymentResult,
    broker: PaymentBroker = Depends(get_payment_broker),
):
    """Called by the payment provider once the charge succeeded or failed."""
    outcome = PaymentOutcome.PAID if payload.paid else PaymentOutcome.DECLINED
    try:
        broker.resolve(reference, outcome)
    except PaymentAlreadyResolved as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return {"reference": reference, "outcome": outcome.value}
