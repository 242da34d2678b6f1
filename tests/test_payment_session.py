import asyncio
import time

import pytest

from storefront.constants.payment_status import SessionStatus
from storefront.schemas.payment_schemas import (
    BankForm,
    LocalMethod,
    LocalPaymentResponse,
    TradeType,
    UpiForm,
)
from storefront.services.payment_session import (
    InvalidTransition,
    PaymentInFlight,
    PaymentSession,
    PaymentSessionRegistry,
)
from tests.helpers import FakePaymentClient, backend_mode, make_settings


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def new_session(available=False, rng=None, **overrides):
    return PaymentSession(
        config=make_settings(**overrides),
        backend=backend_mode(available),
        rng=rng,
    )


def test_new_session_defaults():
    session = new_session()
    assert session.status == SessionStatus.idle
    assert session.trade_type == TradeType.international
    assert session.local_method is None
    assert session.time_left == 300
    assert not session.timer_active
    assert not session.qr_visible
    assert session.order_id is None


def test_countdown_decrements_by_one_and_stops_at_zero():
    session = new_session()
    session.status = SessionStatus.waiting

    seen = []
    for _ in range(300):
        session.tick()
        seen.append(session.time_left)

    assert seen == list(range(299, -1, -1))
    assert session.status == SessionStatus.expired

    session.tick()
    assert session.time_left == 0


def test_poll_runs_every_fifth_tick():
    session = new_session(rng=FixedRandom(0.0), CONFIRM_PROBABILITY=0.05)
    session.status = SessionStatus.waiting

    for _ in range(4):
        session.tick()
    assert session.status == SessionStatus.waiting

    session.tick()
    assert session.confirmed
    assert session.time_left == 295
    assert len(session.order_id) == 16


def test_poll_miss_keeps_waiting():
    session = new_session(rng=FixedRandom(0.96), CONFIRM_PROBABILITY=0.05)
    session.status = SessionStatus.waiting
    for _ in range(50):
        session.tick()
    assert session.status == SessionStatus.waiting


def test_tick_does_nothing_before_timer_starts():
    session = new_session()
    session.tick()
    assert session.time_left == 300


def test_tab_and_method_selection():
    session = new_session()
    session.select_trade_type(TradeType.local)
    session.select_local_method(LocalMethod.bank)
    assert session.local_method == LocalMethod.bank

    session.select_local_method(LocalMethod.card)
    assert session.local_method == LocalMethod.card

    session.select_local_method(None)
    assert session.local_method is None


def test_fallback_banner_only_on_local_tab():
    session = new_session(available=False)
    assert session.view()["banner"] is None

    session.select_trade_type(TradeType.local)
    assert session.view()["banner"] == "Backend connection unavailable. Using fallback mode."

    assert new_session(available=True).view()["banner"] is None


def test_open_qr_starts_single_ticker():
    async def scenario():
        session = new_session()
        session.open_qr()
        first = session._ticker
        session.open_qr()
        assert session._ticker is first
        assert session.qr_visible and session.timer_active
        await asyncio.sleep(0.05)
        assert session.time_left < 300
        session.close()

    asyncio.run(scenario())


def test_expiry_stops_the_ticker():
    async def scenario():
        session = new_session(COUNTDOWN_SECONDS=3, TICK_SECONDS=0.001)
        session.open_qr()
        await asyncio.sleep(0.1)
        assert session.status == SessionStatus.expired
        assert session.time_left == 0
        assert not session.ticking

    asyncio.run(scenario())


def test_close_leaves_no_timer_firing():
    async def scenario():
        session = new_session(TICK_SECONDS=0.005)
        session.open_qr()
        await asyncio.sleep(0.03)

        session.close()
        await asyncio.sleep(0)
        frozen = session.time_left

        await asyncio.sleep(0.05)
        assert session.time_left == frozen
        assert not session.ticking
        assert session.status == SessionStatus.waiting

    asyncio.run(scenario())


def test_sent_confirms_within_one_second_while_counting_down():
    async def scenario():
        session = new_session(SENT_DELAY_SECONDS=1.0, TICK_SECONDS=0.05)
        session.open_qr()

        started = time.monotonic()
        await session.mark_sent()
        elapsed = time.monotonic() - started

        assert session.confirmed
        assert elapsed < 1.2
        assert len(session.order_id) == 16
        assert not session.ticking
        assert not session.loading

    asyncio.run(scenario())


def test_sent_works_after_expiry_and_before_timer():
    async def scenario():
        idle = new_session()
        await idle.mark_sent()
        assert idle.confirmed

        expired = new_session()
        expired.status = SessionStatus.expired
        await expired.mark_sent()
        assert expired.confirmed

    asyncio.run(scenario())


def test_confirmed_is_terminal():
    async def scenario():
        session = new_session()
        await session.mark_sent()
        order_id = session.order_id

        with pytest.raises(InvalidTransition):
            await session.mark_sent()
        with pytest.raises(InvalidTransition):
            session.open_qr()
        assert session.order_id == order_id

    asyncio.run(scenario())


def test_double_sent_is_rejected_while_processing():
    async def scenario():
        session = new_session(SENT_DELAY_SECONDS=0.05)
        first = asyncio.ensure_future(session.mark_sent())
        await asyncio.sleep(0)
        with pytest.raises(PaymentInFlight):
            await session.mark_sent()
        await first
        assert session.confirmed

    asyncio.run(scenario())


def test_local_fallback_confirms_with_generated_id():
    async def scenario():
        session = new_session(available=False)
        client = FakePaymentClient(LocalPaymentResponse(success=True, order_id="never-used"))

        ok = await session.submit_local(UpiForm(upi_id="asha@upi"), client)

        assert ok
        assert session.confirmed
        assert session.local_method == LocalMethod.upi
        assert session.order_id != "never-used"
        assert client.payloads == []

    asyncio.run(scenario())


def test_local_backend_payload_and_server_order_id():
    async def scenario():
        session = new_session(available=True)
        client = FakePaymentClient(LocalPaymentResponse(success=True, order_id="srv0000000000001"))
        form = BankForm(account_number="0012", ifsc_code="HDFC0001", account_name="Asha")

        ok = await session.submit_local(form, client)

        assert ok
        assert session.order_id == "srv0000000000001"
        assert client.payloads == [{
            "amount": 16499,
            "method": "bank",
            "accountNumber": "0012",
            "ifscCode": "HDFC0001",
            "accountName": "Asha",
        }]

    asyncio.run(scenario())


def test_local_backend_failure_keeps_form():
    async def scenario():
        session = new_session(available=True)
        session.select_trade_type(TradeType.local)
        client = FakePaymentClient(LocalPaymentResponse(success=False, error="Insufficient funds"))

        ok = await session.submit_local(UpiForm(upi_id="asha@upi"), client)

        assert not ok
        assert session.error == "Insufficient funds"
        assert not session.confirmed
        assert session.order_id is None
        assert session.local_method == LocalMethod.upi
        assert not session.loading

    asyncio.run(scenario())


class SlowPaymentClient(FakePaymentClient):
    """Holds the request open long enough for the ticker to poll."""

    def __init__(self, result, delay=0.2):
        super().__init__(result)
        self.delay = delay

    def submit(self, payload):
        time.sleep(self.delay)
        return super().submit(payload)


def test_poll_confirming_during_local_submit_keeps_server_order_id():
    async def scenario():
        session = new_session(available=True, CONFIRM_PROBABILITY=1.0, POLL_EVERY_TICKS=1)
        session.open_qr()
        client = SlowPaymentClient(LocalPaymentResponse(success=True, order_id="srv0000000000002"))

        ok = await session.submit_local(UpiForm(upi_id="asha@upi"), client)

        assert ok
        assert session.confirmed
        assert session.order_id == "srv0000000000002"
        assert not session.ticking
        assert not session.loading

    asyncio.run(scenario())


def test_backend_failure_after_poll_confirmed_is_ignored():
    async def scenario():
        session = new_session(available=True, CONFIRM_PROBABILITY=1.0, POLL_EVERY_TICKS=1)
        session.open_qr()
        client = SlowPaymentClient(LocalPaymentResponse(success=False, error="Insufficient funds"))

        ok = await session.submit_local(UpiForm(upi_id="asha@upi"), client)

        assert ok
        assert session.confirmed
        assert session.error is None
        assert session.order_id is not None

    asyncio.run(scenario())


def test_poll_confirming_during_fallback_delay_keeps_first_order_id():
    async def scenario():
        session = new_session(
            available=False,
            CONFIRM_PROBABILITY=1.0,
            POLL_EVERY_TICKS=1,
            FALLBACK_DELAY_SECONDS=0.2,
        )
        session.open_qr()
        pending = asyncio.ensure_future(
            session.submit_local(UpiForm(upi_id="asha@upi"), FakePaymentClient(None))
        )
        while not session.confirmed:
            await asyncio.sleep(0.01)
        first_order_id = session.order_id

        assert await pending
        assert session.order_id == first_order_id

    asyncio.run(scenario())


def test_closed_while_submitting_never_confirms():
    async def scenario():
        session = new_session(available=True)
        client = SlowPaymentClient(LocalPaymentResponse(success=True, order_id="srv0000000000003"))
        pending = asyncio.ensure_future(session.submit_local(UpiForm(upi_id="asha@upi"), client))
        await asyncio.sleep(0.05)
        session.close()

        assert not await pending
        assert not session.confirmed
        assert session.order_id is None

    asyncio.run(scenario())


def test_registry_expires_idle_sessions_only():
    async def scenario():
        registry = PaymentSessionRegistry(make_settings(SESSION_TTL_SECONDS=10, TICK_SECONDS=60))
        idle = registry.create(backend=backend_mode(False))
        confirmed = registry.create(backend=backend_mode(False))
        await confirmed.mark_sent()
        waiting = registry.create(backend=backend_mode(False))
        waiting.open_qr()
        assert len(registry) == 3

        expired = registry.expire_stale(now=time.monotonic() + 11)

        assert expired == 2
        assert len(registry) == 1
        assert registry.get(waiting.id) is waiting
        assert registry.get(idle.id) is None
        assert idle.closed and confirmed.closed
        registry.close_all()
        assert len(registry) == 0
        assert not waiting.ticking

    asyncio.run(scenario())


def test_touch_keeps_session_alive():
    registry = PaymentSessionRegistry(make_settings(SESSION_TTL_SECONDS=10))
    session = registry.create(backend=backend_mode(False))
    session.last_seen -= 20
    session.touch()

    assert registry.expire_stale() == 0
    assert len(registry) == 1
