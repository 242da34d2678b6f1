"""Mock local-payment processor. Run with ``uvicorn storefront.backend:app --port 8080``."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import Settings, settings
from storefront.routes import local_payment
from storefront.utils.logs import configure_logging


def create_backend_app(config: Settings = settings) -> FastAPI:
    configure_logging(config.LOG_LEVEL)

    app = FastAPI(title="Mock Payment Backend")
    app.state.settings = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(local_payment.router, tags=["Local Payment"])
    return app


app = create_backend_app()
