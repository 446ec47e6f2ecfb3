"""
LeftoverSaver — Payment outcome broker

A booking request parks on an asyncio.Future keyed by the client's payment
reference until the payment collaborator reports the outcome via
POST /payments/{reference}. Each reference resolves exactly once.

The broker is process-local: the booking request and the payment callback
must reach the same worker. Its memory is bounded by the retention window.
"""
import asyncio
import logging
import time
from enum import Enum

from leftoversaver.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class PaymentOutcome(str, Enum):
    PAID = "paid"
    DECLINED = "declined"


class PaymentError(Exception):
    pass


class PaymentAlreadyPending(PaymentError):
    def __init__(self, reference: str):
        super().__init__(f"A booking is already waiting on payment '{reference}'.")
        self.reference = reference


class PaymentAlreadyResolved(PaymentError):
    def __init__(self, reference: str):
        super().__init__(f"Payment '{reference}' was already resolved.")
        self.reference = reference


class PaymentBroker:
    """
    Outcomes that nobody collects, and the markers that stop a collected
    reference from being reused, are kept for ``retention_seconds`` and then
    pruned. Pruning runs on every resolve/collect.
    """

    def __init__(self, timeout_seconds: float | None = None, retention_seconds: float | None = None):
        self.timeout_seconds = timeout_seconds or settings.PAYMENT_TIMEOUT_SECONDS
        self.retention_seconds = retention_seconds or settings.PAYMENT_RESULT_RETENTION_SECONDS
        self._futures: dict[str, asyncio.Future] = {}
        self._resolved_at: dict[str, float] = {}
        self._waiting: set[str] = set()
        self._consumed: dict[str, float] = {}

    def _future(self, reference: str) -> asyncio.Future:
        if reference in self._consumed:
            raise PaymentAlreadyResolved(reference)
        fut = self._futures.get(reference)
        if fut is None:
            fut = asyncio.get_running_loop().create_future()
            self._futures[reference] = fut
        return fut

    def prune(self, now: float | None = None) -> int:
        """Forget consumed references and unclaimed outcomes older than the retention window."""
        cutoff = (time.monotonic() if now is None else now) - self.retention_seconds

        expired = [ref for ref, at in self._consumed.items() if at <= cutoff]
        for ref in expired:
            del self._consumed[ref]

        orphaned = [
            ref for ref, at in self._resolved_at.items()
            if at <= cutoff and ref not in self._waiting
        ]
        for ref in orphaned:
            del self._resolved_at[ref]
            self._futures.pop(ref, None)

        if orphaned:
            logger.info("Dropped %d uncollected payment outcome(s)", len(orphaned))
        return len(expired) + len(orphaned)

    def resolve(self, reference: str, outcome: PaymentOutcome) -> None:
        """Deliver the outcome. May arrive before the booking starts waiting."""
        self.prune()
        fut = self._future(reference)
        if fut.done():
            raise PaymentAlreadyResolved(reference)
        fut.set_result(outcome)
        self._resolved_at[reference] = time.monotonic()
        logger.info("Payment %s resolved: %s", reference, outcome.value)

    async def collect(self, reference: str) -> PaymentOutcome:
        """
        Suspend until the payment outcome for ``reference`` arrives.
        No outcome within the timeout counts as DECLINED.
        A reference can be collected once; reuse raises PaymentAlreadyResolved.
        """
        self.prune()
        if reference in self._waiting:
            raise PaymentAlreadyPending(reference)

        fut = self._future(reference)
        self._waiting.add(reference)
        try:
            return await asyncio.wait_for(asyncio.shield(fut), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Payment %s timed out after %.1fs", reference, self.timeout_seconds)
            if not fut.done():
                fut.set_result(PaymentOutcome.DECLINED)
            return fut.result()
        finally:
            self._waiting.discard(reference)
            if fut.done():
                self._futures.pop(reference, None)
                self._resolved_at.pop(reference, None)
                self._consumed[reference] = time.monotonic()

    def pending(self) -> int:
        return sum(1 for f in self._futures.values() if not f.done())

    def tracked(self) -> int:
        """References still held in memory, outcomes and consumed markers alike."""
        return len(self._futures) + len(self._consumed)


_broker: PaymentBroker | None = None


def get_payment_broker() -> PaymentBroker:
    global _broker
    if _broker is None:
        _broker = PaymentBroker()
    return _broker
