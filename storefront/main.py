import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from storefront.config import Settings, settings
from storefront.jobs.session_expiry import run_session_expiry
from storefront.routes import catalog, checkout, health, pages, payments
from storefront.services.backend_probe import BackendMode, probe_backend
from storefront.services.checkout_service import CheckoutRegistry
from storefront.services.payment_client import LocalPaymentClient
from storefront.services.payment_session import PaymentSessionRegistry
from storefront.utils.logs import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    config: Settings = settings,
    backend_mode: Optional[BackendMode] = None,
    payment_client: Optional[LocalPaymentClient] = None,
    payment_sessions: Optional[PaymentSessionRegistry] = None,
) -> FastAPI:
    """
    Build the storefront.

    ``backend_mode`` skips the start-up health probe when given; the probe
    otherwise runs exactly once per process.
    """
    configure_logging(config.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if backend_mode is not None:
            app.state.backend_mode = backend_mode
        elif config.PROBE_BACKEND_ON_STARTUP:
            app.state.backend_mode = await run_in_threadpool(
                probe_backend,
                config.BACKEND_URL,
                timeout=config.HEALTH_TIMEOUT_SECONDS,
            )
        else:
            app.state.backend_mode = BackendMode.fallback(config.BACKEND_URL, "probe disabled")

        logger.info(
            f"Local payments: {'backend' if app.state.backend_mode.available else 'fallback'} mode"
        )
        sweeper = asyncio.create_task(
            run_session_expiry(
                app.state.checkouts,
                app.state.payments,
                config.SWEEP_INTERVAL_SECONDS,
            )
        )
        yield
        sweeper.cancel()
        # ✅ no countdown outlives the process
        app.state.payments.close_all()
        app.state.payment_client.close()

    app = FastAPI(title=f"{config.STORE_NAME} Checkout", lifespan=lifespan)

    app.state.settings = config
    app.state.checkouts = CheckoutRegistry(config.SESSION_TTL_SECONDS)
    app.state.payments = (
        payment_sessions if payment_sessions is not None else PaymentSessionRegistry(config)
    )
    app.state.payment_client = payment_client or LocalPaymentClient(
        config.BACKEND_URL,
        timeout=config.PAYMENT_TIMEOUT_SECONDS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(catalog.router, prefix="/api/product", tags=["Product"])
    app.include_router(checkout.router, prefix="/api/checkout", tags=["Checkout"])
    app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(pages.router, include_in_schema=False)

    return app


app = create_app()
