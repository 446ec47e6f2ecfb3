"""
LeftoverSaver — Offer and Store models

[TRANSACTIONAL DATA] offers.stock — decremented by paid bookings
[CONFIG DATA]        stores — edited by partners, read-only for ranking
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, JSON, Text, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from leftoversaver.db.database import Base


class Store(Base):
    """
    [CONFIG DATA] — Partner store profile.
    The primary key is the owning account's uid.
    """
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id}>"


class Offer(Base):
    """
    [TRANSACTIONAL DATA during booking] / [CONFIG DATA for everything else]
    version_id is the optimistic locking column, incremented on every stock update.
    A NULL stock is read as 1 by the booking transactor.
    """
    __tablename__ = "offers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)  # minor currency units
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    pickup_until: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    store_id: Mapped[str | None] = mapped_column(ForeignKey("stores.id"), nullable=True, index=True)
    owner_uid: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # optimistic lock
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    store: Mapped[Store | None] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return f"<Offer id={self.id} name={self.name!r} stock={self.stock}>"
