"""
LeftoverSaver — Booking error kinds

Every failure of the booking transactor is one of these. Route handlers map
them onto HTTP status codes; nothing below the API layer returns error codes.
"""


class BookingError(Exception):
    """Base class for booking failures."""


class SoldOut(BookingError):
    def __init__(self, offer_id: str):
        super().__init__(f"Offer '{offer_id}' is sold out.")
        self.offer_id = offer_id


class NotFound(BookingError):
    pass


class OfferNotFound(NotFound):
    def __init__(self, offer_id: str):
        super().__init__(f"Offer '{offer_id}' not found.")
        self.offer_id = offer_id


class BookingNotFound(NotFound):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking '{booking_id}' not found.")
        self.booking_id = booking_id


class TransientConflict(BookingError):
    """Optimistic lock conflicts were not resolved within the retry budget."""
