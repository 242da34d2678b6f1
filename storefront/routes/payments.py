from fastapi import APIRouter, Depends, HTTPException, Response

from storefront.config import Settings
from storefront.dependencies.state import (
    get_payment_client,
    get_payment_session,
    get_payments,
    get_settings,
)
from storefront.notifications import CheckoutEvent, dispatch_checkout_event
from storefront.schemas.payment_schemas import (
    LocalMethodUpdate,
    LocalPaymentForm,
    PaymentSessionView,
    TradeTypeUpdate,
)
from storefront.services.payment_client import LocalPaymentClient
from storefront.services.payment_session import (
    InvalidTransition,
    PaymentInFlight,
    PaymentSession,
    PaymentSessionRegistry,
)
from storefront.services.qr_service import render_qr_svg

router = APIRouter()


@router.get("/address")
async def copy_address(config: Settings = Depends(get_settings)):
    popup = dispatch_checkout_event(event=CheckoutEvent.ADDRESS_COPIED)
    return {"address": config.WALLET_ADDRESS, "popup": popup}


@router.get("/qr.svg")
async def wallet_qr(config: Settings = Depends(get_settings)):
    return Response(
        content=render_qr_svg(config.WALLET_ADDRESS),
        media_type="image/svg+xml",
    )


@router.get("/{session_id}", response_model=PaymentSessionView)
async def get_session_state(session: PaymentSession = Depends(get_payment_session)):
    return session.view()


@router.post("/{session_id}/trade-type", response_model=PaymentSessionView)
async def select_trade_type(
    data: TradeTypeUpdate,
    session: PaymentSession = Depends(get_payment_session),
):
    session.select_trade_type(data.trade_type)
    return session.view()


@router.post("/{session_id}/local-method", response_model=PaymentSessionView)
async def select_local_method(
    data: LocalMethodUpdate,
    session: PaymentSession = Depends(get_payment_session),
):
    session.select_local_method(data.method)
    return session.view()


@router.post("/{session_id}/open-qr", response_model=PaymentSessionView)
async def open_qr(session: PaymentSession = Depends(get_payment_session)):
    try:
        session.open_qr()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.view()


@router.post("/{session_id}/sent", response_model=PaymentSessionView)
async def mark_sent(session: PaymentSession = Depends(get_payment_session)):
    try:
        await session.mark_sent()
    except (InvalidTransition, PaymentInFlight) as e:
        raise HTTPException(status_code=409, detail=str(e))

    popup = dispatch_checkout_event(event=CheckoutEvent.PAYMENT_SUCCESS, related_id=session.id)
    return session.view(popup=popup)


@router.post("/{session_id}/local", response_model=PaymentSessionView)
async def submit_local_payment(
    form: LocalPaymentForm,
    session: PaymentSession = Depends(get_payment_session),
    client: LocalPaymentClient = Depends(get_payment_client),
):
    try:
        ok = await session.submit_local(form, client)
    except (InvalidTransition, PaymentInFlight) as e:
        raise HTTPException(status_code=409, detail=str(e))

    if ok:
        popup = dispatch_checkout_event(event=CheckoutEvent.PAYMENT_SUCCESS, related_id=session.id)
    else:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.PAYMENT_FAILED,
            message=session.error,
            related_id=session.id,
        )
    return session.view(popup=popup)


@router.delete("/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    payments: PaymentSessionRegistry = Depends(get_payments),
):
    if not payments.remove(session_id):
        raise HTTPException(status_code=404, detail="Payment session not found")
    return Response(status_code=204)
