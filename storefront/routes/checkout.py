from fastapi import APIRouter, Depends, HTTPException

from storefront.dependencies.state import (
    get_backend_mode,
    get_checkout,
    get_checkouts,
    get_payments,
)
from storefront.notifications import CheckoutEvent, dispatch_checkout_event
from storefront.schemas.order_schemas import OrderDetails, OrderPlacedResponse
from storefront.services.backend_probe import BackendMode
from storefront.services.checkout_service import (
    Checkout,
    CheckoutRegistry,
    place_order,
)
from storefront.services.payment_session import InvalidTransition, PaymentSessionRegistry

router = APIRouter()


@router.post("", status_code=201)
def create_checkout(checkouts: CheckoutRegistry = Depends(get_checkouts)):
    return checkouts.create().view()


@router.get("/{checkout_id}")
def get_checkout_state(checkout: Checkout = Depends(get_checkout)):
    return checkout.view()


@router.post("/{checkout_id}/cart")
def add_to_cart(checkout: Checkout = Depends(get_checkout)):
    if not checkout.cart_added:
        checkout.add_to_cart()
        dispatch_checkout_event(event=CheckoutEvent.CART_ADDED, related_id=checkout.id)
    return checkout.view()


@router.post("/{checkout_id}/order", response_model=OrderPlacedResponse)
def submit_order(
    details: OrderDetails,
    checkout: Checkout = Depends(get_checkout),
    checkouts: CheckoutRegistry = Depends(get_checkouts),
    payments: PaymentSessionRegistry = Depends(get_payments),
    backend: BackendMode = Depends(get_backend_mode),
):
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

    # ✅ Cash on delivery: nothing left to do
    if session is None:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.ORDER_PLACED_COD,
            related_id=checkout.id,
        )
        return {
            "message": "Order placed successfully!",
            "payment_method": details.payment_method,
            "order": details,
            "popup": popup,
        }

    dispatch_checkout_event(event=CheckoutEvent.PAYMENT_STARTED, related_id=session.id)
    return {
        "message": "Proceed to payment",
        "payment_method": details.payment_method,
        "order": details,
        "payment_session_id": session.id,
    }
