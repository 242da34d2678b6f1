import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from storefront.schemas.payment_schemas import LocalPaymentRequest, LocalPaymentResponse
from storefront.utils.order_id import generate_order_id

logger = logging.getLogger(__name__)

router = APIRouter()


def validate_payment(payment: LocalPaymentRequest) -> str | None:
    """Return the first problem with the request, or None."""
    if payment.method == "upi":
        if not payment.upi_id:
            return "UPI ID is required"
    elif payment.method == "bank":
        if not (payment.account_number and payment.ifsc_code and payment.account_name):
            return "All bank details are required"
    elif payment.method == "card":
        if not (payment.card_number and payment.expiry_date and payment.name_on_card):
            return "All card details are required"
    else:
        return "Invalid payment method"
    return None


def _payment_response(status_code: int, body: LocalPaymentResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.get("/health", response_class=PlainTextResponse)
def health():
    return "Server is running"


@router.post("/api/local-payment")
async def process_local_payment(request: Request):
    try:
        payment = LocalPaymentRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return _payment_response(
            400, LocalPaymentResponse(success=False, error="Invalid request format")
        )

    # simulated processor latency
    await asyncio.sleep(request.app.state.settings.BACKEND_PROCESSING_DELAY_SECONDS)

    error = validate_payment(payment)
    if error:
        logger.info(f"Rejected {payment.method or 'unknown'} payment: {error}")
        return _payment_response(400, LocalPaymentResponse(success=False, error=error))

    order_id = generate_order_id()
    logger.info(f"Payment successful via {payment.method}, order {order_id}")
    return _payment_response(
        200,
        LocalPaymentResponse(
            success=True,
            order_id=order_id,
            message=f"Payment successful via {payment.method}",
        ),
    )
