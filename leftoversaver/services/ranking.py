"""
LeftoverSaver — Offer ranking

Nearest-first ordering of offers around the caller, plus the browse filters.
Offers are read through attributes only (ORM rows and API schemas both work):
``lat``, ``lng``, ``pickup_until``, ``categories`` and an optional ``store``
carrying its own ``lat``/``lng``/``categories``.
"""
import math
from dataclasses import dataclass
from typing import Any, Iterable

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class OfferFilters:
    max_distance_km: float | None = None
    pickup_after: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class RankedOffer:
    offer: Any
    distance_km: float | None


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two points, in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def parse_distance_threshold(raw: Any) -> float | None:
    """Anything that isn't a finite number turns the distance filter off."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def offer_coordinate(offer: Any) -> Coordinate | None:
    """The offer's own position, falling back to its store's."""
    for source in (offer, getattr(offer, "store", None)):
        if source is None:
            continue
        lat, lng = getattr(source, "lat", None), getattr(source, "lng", None)
        if lat is not None and lng is not None:
            return Coordinate(float(lat), float(lng))
    return None


def _tags(offer: Any) -> list[str]:
    tags = list(getattr(offer, "categories", None) or [])
    store = getattr(offer, "store", None)
    if store is not None:
        tags.extend(getattr(store, "categories", None) or [])
    return tags


def _matches(ranked: RankedOffer, filters: OfferFilters) -> bool:
    if filters.max_distance_km is not None:
        # undefined distance can never be shown to be within range
        if ranked.distance_km is None or ranked.distance_km > filters.max_distance_km:
            return False

    if filters.pickup_after:
        # plain text ordering, not a time-of-day comparison
        if (getattr(ranked.offer, "pickup_until", None) or "") < filters.pickup_after:
            return False

    if filters.category:
        needle = filters.category.casefold()
        if not any(needle in tag.casefold() for tag in _tags(ranked.offer)):
            return False

    return True


def rank(
    offers: Iterable[Any],
    origin: Coordinate | None,
    filters: OfferFilters | None = None,
) -> list[RankedOffer]:
    """
    Sort offers by distance from ``origin`` and apply ``filters``.

    Offers without a resolvable distance go last, keeping their input order.
    Sorting uses unrounded distances.
    """
    filters = filters or OfferFilters()

    ranked = []
    for offer in offers:
        coord = offer_coordinate(offer)
        distance = haversine_km(origin, coord) if origin is not None and coord is not None else None
        ranked.append(RankedOffer(offer=offer, distance_km=distance))

    ranked.sort(key=lambda r: (r.distance_km is None, r.distance_km or 0.0))
    return [r for r in ranked if _matches(r, filters)]
