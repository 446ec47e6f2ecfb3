"""
LeftoverSaver — Booking / Payment Pydantic Schemas
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from leftoversaver.models.booking import BookingStatus


class BookingSnapshot(BaseModel):
    """Offer fields copied onto a booking at booking time."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    price_cents: int = Field(..., ge=0)
    currency: str = Field(..., min_length=3, max_length=3)
    pickup_until: str = ""

    @classmethod
    def from_offer(cls, offer, default_currency: str = "EUR") -> "BookingSnapshot":
        return cls(
            name=offer.name,
            price_cents=offer.price_cents,
            currency=offer.currency or default_currency,
            pickup_until=offer.pickup_until or "",
        )


class BookingRequest(BaseModel):
    payment_reference: str = Field(..., min_length=1, max_length=128)


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    offer_id: str
    offer_name: str
    price_cents: int
    currency: str
    pickup_until: str
    uid: str
    paid: bool
    code: str
    status: BookingStatus
    created_at: datetime | None = None
    price_display: str | None = None


class PaymentResult(BaseModel):
    paid: bool
