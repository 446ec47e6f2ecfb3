"""
LeftoverSaver — Booking model

[TRANSACTIONAL DATA] — append-mostly: created once, then at most one
status transition active → cancelled.
"""
import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Boolean, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column
from leftoversaver.db.database import Base


class BookingStatus(str, PyEnum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Booking(Base):
    """
    Offer name/price/pickup window are a snapshot taken at booking time,
    not a live join against the offer.
    """
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    offer_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    offer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    pickup_until: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    uid: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    code: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", values_callable=lambda e: [m.value for m in e]),
        default=BookingStatus.ACTIVE,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<Booking id={self.id} offer={self.offer_id} paid={self.paid} status={self.status.value}>"
