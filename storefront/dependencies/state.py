from fastapi import Depends, HTTPException, Request

from storefront.config import Settings
from storefront.services.backend_probe import BackendMode
from storefront.services.checkout_service import Checkout, CheckoutRegistry
from storefront.services.payment_client import LocalPaymentClient
from storefront.services.payment_session import PaymentSession, PaymentSessionRegistry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_checkouts(request: Request) -> CheckoutRegistry:
    return request.app.state.checkouts


def get_payments(request: Request) -> PaymentSessionRegistry:
    return request.app.state.payments


def get_backend_mode(request: Request) -> BackendMode:
    return request.app.state.backend_mode


def get_payment_client(request: Request) -> LocalPaymentClient:
    return request.app.state.payment_client


def get_checkout(
    checkout_id: str,
    checkouts: CheckoutRegistry = Depends(get_checkouts),
) -> Checkout:
    checkout = checkouts.get(checkout_id)
    if not checkout:
        raise HTTPException(status_code=404, detail="Checkout not found")
    checkout.touch()
    return checkout


def get_payment_session(
    session_id: str,
    payments: PaymentSessionRegistry = Depends(get_payments),
) -> PaymentSession:
    session = payments.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Payment session not found")
    session.touch()
    return session
