"""
LeftoverSaver — Offer / Store Pydantic Schemas
"""
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

CURRENCY_CODE = re.compile(r"[A-Za-z]{3}")


def _split_categories(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(c).strip() for c in value if str(c).strip()]


class StoreIn(BaseModel):
    """Store profile edit. Omitted fields keep their stored value."""
    address: str | None = Field(None, max_length=500)
    contact: str | None = Field(None, max_length=255)
    categories: list[str] | str | None = None
    lat: float | None = Field(None, ge=-90, le=90, allow_inf_nan=False)
    lng: float | None = Field(None, ge=-180, le=180, allow_inf_nan=False)

    @field_validator("address", "contact")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None

    @field_validator("categories")
    @classmethod
    def _categories(cls, v):
        return None if v is None else _split_categories(v)


class StoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    address: str = ""
    contact: str = ""
    categories: list[str] = Field(default_factory=list)
    lat: float | None = None
    lng: float | None = None


class OfferCreate(BaseModel):
    name: str = Field(..., max_length=255, examples=["Cafe Aroma Surprise Bag"])
    price_cents: int = Field(..., ge=0, examples=[599])
    currency: str | None = Field(None, max_length=3, examples=["EUR"])
    pickup_until: str = Field("", max_length=255, examples=["Pickup before 8PM"])
    stock: int = Field(..., ge=0, examples=[5])
    categories: list[str] | str = Field(default_factory=list, examples=["bakery, vegan"])
    image_url: str | None = None
    lat: float | None = Field(None, ge=-90, le=90, allow_inf_nan=False)
    lng: float | None = Field(None, ge=-180, le=180, allow_inf_nan=False)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not CURRENCY_CODE.fullmatch(v):
            raise ValueError("currency must be a three-letter ISO 4217 code")
        return v.upper()

    @field_validator("categories")
    @classmethod
    def _categories(cls, v):
        return _split_categories(v)


class OfferOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price_cents: int
    currency: str
    pickup_until: str = ""
    stock: int | None = None
    image_url: str | None = None
    lat: float | None = None
    lng: float | None = None
    categories: list[str] = Field(default_factory=list)
    store_id: str | None = None
    store: StoreOut | None = None


class RankedOfferOut(OfferOut):
    distance_km: float | None = None
    price_display: str


class StockOut(BaseModel):
    offer_id: str
    stock: int | None
    cached: bool = False
