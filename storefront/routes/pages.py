from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from storefront.config import Settings
from storefront.constants.catalog import PRODUCT
from storefront.dependencies.state import (
    get_backend_mode,
    get_checkout,
    get_checkouts,
    get_payment_client,
    get_payment_session,
    get_payments,
    get_settings,
)
from storefront.notifications import CheckoutEvent, dispatch_checkout_event
from storefront.schemas.order_schemas import OrderDetails
from storefront.schemas.payment_schemas import LOCAL_FORMS, LocalMethod, TradeType
from storefront.services.backend_probe import BackendMode
from storefront.services.checkout_service import (
    STAGE_PAYMENT,
    Checkout,
    CheckoutRegistry,
    place_order,
)
from storefront.services.payment_client import LocalPaymentClient
from storefront.services.payment_session import (
    InvalidTransition,
    PaymentInFlight,
    PaymentSession,
    PaymentSessionRegistry,
)
from storefront.services.qr_service import render_qr_svg
from storefront.utils.template import render_template

router = APIRouter()


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def _field_errors(exc: ValidationError) -> dict:
    return {str(err["loc"][-1]): "This field is required" for err in exc.errors()}


def _render_product(
    config: Settings,
    checkout: Checkout = None,
    status_code: int = 200,
    **context,
) -> HTMLResponse:
    return HTMLResponse(
        render_template(
            "product.html",
            product=PRODUCT,
            amount_usdt=config.amount_usdt,
            checkout=checkout,
            **context,
        ),
        status_code=status_code,
    )


def _render_gateway(
    session: PaymentSession,
    config: Settings,
    popup: dict = None,
    errors: dict = None,
    status_code: int = 200,
) -> HTMLResponse:
    return HTMLResponse(
        render_template(
            "payment_gateway.html",
            session=session.view(popup=popup),
            qr_svg=render_qr_svg(config.WALLET_ADDRESS),
            errors=errors or {},
        ),
        status_code=status_code,
    )


# -------------------------
# Product + order form
# -------------------------
@router.get("/", response_class=HTMLResponse)
def product_page(config: Settings = Depends(get_settings)):
    return _render_product(config)


@router.post("/cart")
def add_to_new_cart(checkouts: CheckoutRegistry = Depends(get_checkouts)):
    checkout = checkouts.create()
    checkout.add_to_cart()
    dispatch_checkout_event(event=CheckoutEvent.CART_ADDED, related_id=checkout.id)
    return _redirect(f"/checkout/{checkout.id}")


@router.post("/checkout/{checkout_id}/cart")
def add_to_cart(checkout: Checkout = Depends(get_checkout)):
    if checkout.add_to_cart():
        dispatch_checkout_event(event=CheckoutEvent.CART_ADDED, related_id=checkout.id)
    return _redirect(f"/checkout/{checkout.id}")


@router.get("/checkout/{checkout_id}", response_class=HTMLResponse)
def checkout_page(
    checkout: Checkout = Depends(get_checkout),
    config: Settings = Depends(get_settings),
):
    if checkout.stage == STAGE_PAYMENT:
        return _redirect(f"/payments/{checkout.payment_session_id}")
    return _render_product(config, checkout, values={}, errors={})


@router.post("/checkout/{checkout_id}", response_class=HTMLResponse)
def submit_order_form(
    name: str = Form(""),
    phone: str = Form(""),
    address: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    landmark: str = Form(""),
    pincode: str = Form(""),
    payment_method: str = Form(""),
    checkout: Checkout = Depends(get_checkout),
    config: Settings = Depends(get_settings),
    checkouts: CheckoutRegistry = Depends(get_checkouts),
    payments: PaymentSessionRegistry = Depends(get_payments),
    backend: BackendMode = Depends(get_backend_mode),
):
    values = {
        "name": name,
        "phone": phone,
        "address": address,
        "city": city,
        "state": state,
        "landmark": landmark,
        "pincode": pincode,
        "payment_method": payment_method,
    }

    try:
        details = OrderDetails.model_validate(values)
    except ValidationError as e:
        return _render_product(
            config,
            checkout,
            status_code=422,
            values=values,
            errors=_field_errors(e),
        )

    try:
        session = place_order(
            checkout,
            details,
            checkouts=checkouts,
            payments=payments,
            backend=backend,
        )
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))

    if session is None:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.ORDER_PLACED_COD,
            related_id=checkout.id,
        )
        return HTMLResponse(
            render_template(
                "order_placed.html",
                product=PRODUCT,
                order=details,
                checkout=checkout,
                popup=popup,
            )
        )

    dispatch_checkout_event(event=CheckoutEvent.PAYMENT_STARTED, related_id=session.id)
    return _redirect(f"/payments/{session.id}")


# -------------------------
# Payment gateway
# -------------------------
@router.get("/payments/{session_id}", response_class=HTMLResponse)
async def payment_page(
    session: PaymentSession = Depends(get_payment_session),
    config: Settings = Depends(get_settings),
):
    return _render_gateway(session, config)


@router.post("/payments/{session_id}/tab")
async def switch_tab(
    trade_type: TradeType = Form(...),
    session: PaymentSession = Depends(get_payment_session),
):
    session.select_trade_type(trade_type)
    return _redirect(f"/payments/{session.id}")


@router.post("/payments/{session_id}/method")
async def choose_local_method(
    method: Optional[LocalMethod] = Form(None),
    session: PaymentSession = Depends(get_payment_session),
):
    # an empty value goes back to the method grid
    session.select_local_method(method)
    return _redirect(f"/payments/{session.id}")


@router.post("/payments/{session_id}/open-qr")
async def open_qr(session: PaymentSession = Depends(get_payment_session)):
    try:
        session.open_qr()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _redirect(f"/payments/{session.id}")


@router.post("/payments/{session_id}/sent", response_class=HTMLResponse)
async def mark_sent(
    session: PaymentSession = Depends(get_payment_session),
    config: Settings = Depends(get_settings),
):
    try:
        await session.mark_sent()
    except (InvalidTransition, PaymentInFlight) as e:
        raise HTTPException(status_code=409, detail=str(e))

    popup = dispatch_checkout_event(event=CheckoutEvent.PAYMENT_SUCCESS, related_id=session.id)
    return _render_gateway(session, config, popup=popup)


@router.post("/payments/{session_id}/local", response_class=HTMLResponse)
async def submit_local_form(
    request: Request,
    session: PaymentSession = Depends(get_payment_session),
    config: Settings = Depends(get_settings),
    client: LocalPaymentClient = Depends(get_payment_client),
):
    if session.local_method is None:
        raise HTTPException(status_code=400, detail="Choose a payment method first")

    submitted = dict(await request.form())
    form_cls = LOCAL_FORMS[session.local_method]
    try:
        form = form_cls.model_validate({**submitted, "method": session.local_method.value})
    except ValidationError as e:
        return _render_gateway(session, config, errors=_field_errors(e), status_code=422)

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
    return _render_gateway(session, config, popup=popup)
