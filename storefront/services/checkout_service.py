import logging
import time
from typing import Dict, Optional
from uuid import uuid4

from storefront.schemas.order_schemas import OrderDetails, PaymentMethod
from storefront.services.backend_probe import BackendMode
from storefront.services.payment_session import (
    InvalidTransition,
    PaymentSession,
    PaymentSessionRegistry,
)

logger = logging.getLogger(__name__)

STAGE_PRODUCT = "product"
STAGE_FORM = "form"
STAGE_PAYMENT = "payment"


class Checkout:
    """Cart toggle + order form for the single catalog item."""

    def __init__(self):
        self.id = uuid4().hex
        self.cart_added = False
        self.stage = STAGE_PRODUCT
        self.order: Optional[OrderDetails] = None
        self.payment_session_id: Optional[str] = None
        self.last_seen = time.monotonic()

    def touch(self):
        self.last_seen = time.monotonic()

    def add_to_cart(self) -> bool:
        """Returns False when the item was already in the cart."""
        if self.cart_added:
            return False
        self.cart_added = True
        self.stage = STAGE_FORM
        return True

    def reset(self):
        self.cart_added = False
        self.stage = STAGE_PRODUCT
        self.order = None

    def view(self) -> dict:
        return {
            "id": self.id,
            "cart_added": self.cart_added,
            "stage": self.stage,
            "order": self.order.model_dump() if self.order else None,
            "payment_session_id": self.payment_session_id,
        }


class CheckoutRegistry:
    def __init__(self, ttl_seconds: float = 900):
        self.ttl_seconds = ttl_seconds
        self._checkouts: Dict[str, Checkout] = {}

    def create(self) -> Checkout:
        self.expire_stale()
        checkout = Checkout()
        self._checkouts[checkout.id] = checkout
        return checkout

    def get(self, checkout_id: str) -> Optional[Checkout]:
        return self._checkouts.get(checkout_id)

    def remove(self, checkout_id: str) -> bool:
        return self._checkouts.pop(checkout_id, None) is not None

    def expire_stale(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        stale = [
            checkout_id
            for checkout_id, checkout in self._checkouts.items()
            if now - checkout.last_seen > self.ttl_seconds
        ]
        for checkout_id in stale:
            self.remove(checkout_id)
        return len(stale)

    def __len__(self):
        return len(self._checkouts)


def place_order(
    checkout: Checkout,
    details: OrderDetails,
    *,
    checkouts: CheckoutRegistry,
    payments: PaymentSessionRegistry,
    backend: BackendMode,
) -> Optional[PaymentSession]:
    """
    Submit the order form.

    COD confirms on the spot and discards the checkout; Online opens a
    payment session and returns it.
    """
    if not checkout.cart_added or checkout.stage != STAGE_FORM:
        raise InvalidTransition("Add the item to your cart before placing an order")

    checkout.order = details

    if details.payment_method == PaymentMethod.COD:
        logger.info(f"COD order placed for checkout {checkout.id}")
        checkout.reset()
        checkouts.remove(checkout.id)
        return None

    session = payments.create(backend=backend, checkout_id=checkout.id)
    checkout.payment_session_id = session.id
    checkout.stage = STAGE_PAYMENT
    logger.info(f"Checkout {checkout.id} moved to payment session {session.id}")
    return session
