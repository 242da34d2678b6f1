import asyncio
import logging
import random
import time
from typing import Dict, Optional
from uuid import uuid4

from starlette.concurrency import run_in_threadpool

from storefront.config import Settings
from storefront.constants.catalog import FALLBACK_BANNER
from storefront.constants.payment_status import ALLOWED_TRANSITIONS, SessionStatus
from storefront.schemas.payment_schemas import LocalMethod, TradeType
from storefront.services.backend_probe import BackendMode
from storefront.services.payment_client import LocalPaymentClient
from storefront.utils.order_id import generate_order_id
from storefront.utils.template import format_countdown

logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    pass


class PaymentInFlight(RuntimeError):
    pass


class PaymentSession:
    """
    One visit to the payment page.

    International flow:

        idle --open_qr--> waiting --time_left == 0--> expired
                             |                           |
                             +--poll / sent--> confirmed <--sent--+

    A single ticker drives both the countdown and the confirmation poll.
    It only runs while ``waiting`` and is cancelled by ``close()``.
    """

    def __init__(
        self,
        *,
        config: Settings,
        backend: BackendMode,
        checkout_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self.id = uuid4().hex
        self.checkout_id = checkout_id
        self.config = config
        self.backend = backend
        self.rng = rng or random.Random()

        self.status = SessionStatus.idle
        self.trade_type = TradeType.international
        self.local_method: Optional[LocalMethod] = None
        self.time_left = config.COUNTDOWN_SECONDS
        self.timer_active = False
        self.qr_visible = False
        self.loading = False
        self.order_id: Optional[str] = None
        self.error: Optional[str] = None
        self.closed = False
        self.last_seen = time.monotonic()

        self._ticks = 0
        self._ticker: Optional[asyncio.Task] = None

    # -------------------------
    # State
    # -------------------------
    @property
    def confirmed(self) -> bool:
        return self.status == SessionStatus.confirmed

    @property
    def ticking(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def touch(self):
        self.last_seen = time.monotonic()

    def is_stale(self, now: float, ttl: float) -> bool:
        # a running countdown or an in-flight payment keeps the session alive
        if self.loading or self.ticking:
            return False
        return now - self.last_seen > ttl

    def _transition(self, new_status: SessionStatus):
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransition(
                f"Cannot move payment session from {self.status.value} to {new_status.value}"
            )
        logger.info(f"Session {self.id}: {self.status.value} -> {new_status.value}")
        self.status = new_status

    def _confirm(self, order_id: Optional[str] = None):
        self._transition(SessionStatus.confirmed)
        self.order_id = order_id or generate_order_id()
        self.error = None
        logger.info(f"Payment confirmed, order ID: {self.order_id}")

    def _settle(self, order_id: Optional[str] = None):
        """
        Confirm after an await, when a poll or Sent may already have confirmed.

        The first confirmation wins, except that an order id issued by the
        payment backend replaces a locally generated one.
        """
        if self.closed:
            return
        if not self.confirmed:
            self._confirm(order_id)
        elif order_id:
            logger.info(f"Session {self.id}: backend order {order_id} replaces {self.order_id}")
            self.order_id = order_id

    def _ensure_open(self):
        if self.closed:
            raise InvalidTransition("Payment session is closed")
        if self.confirmed:
            raise InvalidTransition("Payment already confirmed")

    # -------------------------
    # Tabs
    # -------------------------
    def select_trade_type(self, trade_type: TradeType):
        self.trade_type = trade_type

    def select_local_method(self, method: Optional[LocalMethod]):
        # None goes back to the selector grid
        self.local_method = method
        self.error = None

    # -------------------------
    # International flow
    # -------------------------
    def open_qr(self):
        """Reveal the QR code and start the countdown. Must run inside the event loop."""
        self._ensure_open()
        self.qr_visible = True

        if self.status != SessionStatus.idle:
            return

        self._transition(SessionStatus.waiting)
        self.timer_active = True
        self._ticker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        while self.status == SessionStatus.waiting:
            await asyncio.sleep(self.config.TICK_SECONDS)
            self.tick()

    def tick(self):
        """Advance the countdown by one second and poll every Nth tick."""
        if self.status != SessionStatus.waiting:
            return

        self.time_left = max(self.time_left - 1, 0)
        self._ticks += 1

        if self._ticks % self.config.POLL_EVERY_TICKS == 0 and self._poll_confirmation():
            self._confirm()
            return

        if self.time_left == 0:
            self._transition(SessionStatus.expired)

    def _poll_confirmation(self) -> bool:
        # no chain lookup, just a weighted coin
        return self.rng.random() < self.config.CONFIRM_PROBABILITY

    async def mark_sent(self):
        """User says the transfer went out. Confirms after a fixed processing delay."""
        self._ensure_open()
        if self.loading:
            raise PaymentInFlight("Payment is already being processed")

        self.loading = True
        try:
            await asyncio.sleep(self.config.SENT_DELAY_SECONDS)
        finally:
            self.loading = False

        self._settle()
        self._stop_ticker()

    # -------------------------
    # Local flow
    # -------------------------
    async def submit_local(self, form, client: LocalPaymentClient) -> bool:
        self._ensure_open()
        if self.loading:
            raise PaymentInFlight("Payment is already being processed")

        self.local_method = LocalMethod(form.method)
        self.error = None
        self.loading = True
        try:
            if self.backend.available:
                payload = {
                    "amount": self.config.PRODUCT_AMOUNT_INR,
                    "method": form.method,
                    **form.backend_fields(),
                }
                result = await run_in_threadpool(client.submit, payload)
                if not result.success:
                    # a poll or Sent may have confirmed while the request was out
                    if not self.confirmed:
                        self.error = result.error
                    return self.confirmed
                self._settle(result.order_id)
            else:
                await asyncio.sleep(self.config.FALLBACK_DELAY_SECONDS)
                self._settle()
        finally:
            self.loading = False

        self._stop_ticker()
        return self.confirmed

    # -------------------------
    # Teardown
    # -------------------------
    def _stop_ticker(self):
        ticker, self._ticker = self._ticker, None
        if ticker is not None and not ticker.done():
            ticker.cancel()

    def close(self):
        self.closed = True
        self._stop_ticker()

    def view(self, popup: Optional[dict] = None) -> dict:
        show_banner = not self.backend.available and self.trade_type == TradeType.local
        return {
            "id": self.id,
            "checkout_id": self.checkout_id,
            "status": self.status.value,
            "trade_type": self.trade_type,
            "local_method": self.local_method,
            "time_left": self.time_left,
            "countdown": format_countdown(self.time_left),
            "timer_active": self.timer_active,
            "qr_visible": self.qr_visible,
            "loading": self.loading,
            "confirmed": self.confirmed,
            "order_id": self.order_id,
            "error": self.error,
            "backend_available": self.backend.available,
            "banner": FALLBACK_BANNER if show_banner else None,
            "wallet_address": self.config.WALLET_ADDRESS,
            "amount_inr": self.config.PRODUCT_AMOUNT_INR,
            "amount_usdt": self.config.amount_usdt,
            "popup": popup,
        }


class PaymentSessionRegistry:
    """In-memory sessions for this process. Lost on restart."""

    def __init__(self, config: Settings, rng: Optional[random.Random] = None):
        self.config = config
        self.rng = rng
        self._sessions: Dict[str, PaymentSession] = {}

    def create(self, backend: BackendMode, checkout_id: Optional[str] = None) -> PaymentSession:
        session = PaymentSession(
            config=self.config,
            backend=backend,
            checkout_id=checkout_id,
            rng=self.rng,
        )
        self.expire_stale()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[PaymentSession]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def expire_stale(self, now: Optional[float] = None) -> int:
        """Drop sessions nobody has looked at for SESSION_TTL_SECONDS."""
        now = time.monotonic() if now is None else now
        stale = [
            session_id
            for session_id, session in self._sessions.items()
            if session.is_stale(now, self.config.SESSION_TTL_SECONDS)
        ]
        for session_id in stale:
            self.remove(session_id)
        return len(stale)

    def close_all(self):
        for session_id in list(self._sessions):
            self.remove(session_id)

    def __len__(self):
        return len(self._sessions)
