import asyncio
import logging

from storefront.services.checkout_service import CheckoutRegistry
from storefront.services.payment_session import PaymentSessionRegistry

logger = logging.getLogger(__name__)


def expire_stale_sessions(checkouts: CheckoutRegistry, payments: PaymentSessionRegistry):
    expired_checkouts = checkouts.expire_stale()
    expired_sessions = payments.expire_stale()

    if expired_checkouts or expired_sessions:
        logger.info(
            f"Expired {expired_checkouts} checkouts and {expired_sessions} payment sessions"
        )
    return expired_checkouts, expired_sessions


async def run_session_expiry(
    checkouts: CheckoutRegistry,
    payments: PaymentSessionRegistry,
    interval: float,
):
    while True:
        await asyncio.sleep(interval)
        expire_stale_sessions(checkouts, payments)
