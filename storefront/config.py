from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    STORE_NAME: str = "Storefront"

    # mock local-payment backend
    BACKEND_URL: str = "http://localhost:8080"
    HEALTH_TIMEOUT_SECONDS: float = 3.0
    PAYMENT_TIMEOUT_SECONDS: float = 10.0
    PROBE_BACKEND_ON_STARTUP: bool = True
    BACKEND_PROCESSING_DELAY_SECONDS: float = 1.5

    # catalog
    PRODUCT_AMOUNT_INR: int = 16499
    INR_TO_USDT: float = 0.012
    WALLET_ADDRESS: str = "8cdcxambJVYVXVGbQrRhFVaGs1QwhtztBEToBEyHW7Vr"

    # payment session timing
    COUNTDOWN_SECONDS: int = 300
    TICK_SECONDS: float = 1.0
    POLL_EVERY_TICKS: int = 5
    CONFIRM_PROBABILITY: float = 0.05
    SENT_DELAY_SECONDS: float = 1.0
    FALLBACK_DELAY_SECONDS: float = 1.5

    # in-memory checkouts and payment sessions
    SESSION_TTL_SECONDS: float = 900
    SWEEP_INTERVAL_SECONDS: float = 60

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    LOG_LEVEL: str = "INFO"

    @property
    def amount_usdt(self) -> str:
        return f"{self.PRODUCT_AMOUNT_INR * self.INR_TO_USDT:.2f}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
