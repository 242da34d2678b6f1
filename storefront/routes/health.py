from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from storefront.dependencies.state import get_backend_mode, get_payments
from storefront.services.backend_probe import BackendMode
from storefront.services.payment_session import PaymentSessionRegistry

router = APIRouter()


@router.get("/check")
def health_check(
    backend: BackendMode = Depends(get_backend_mode),
    payments: PaymentSessionRegistry = Depends(get_payments),
):
    return {
        "status": "ok",
        "payment_backend": "available" if backend.available else "fallback",
        "payment_backend_checked_at": backend.checked_at.isoformat(),
        "open_payment_sessions": len(payments),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
