
from storefront.config import Settings
from storefront.services.backend_probe import BackendMode


def make_settings(**overrides) -> Settings:
    values = {
        "PROBE_BACKEND_ON_STARTUP": False,
        "TICK_SECONDS": 0.01,
        "SENT_DELAY_SECONDS": 0.01,
        "FALLBACK_DELAY_SECONDS": 0.01,
        "BACKEND_PROCESSING_DELAY_SECONDS": 0,
        "CONFIRM_PROBABILITY": 0.0,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def backend_mode(available: bool) -> BackendMode:
    if available:
        return BackendMode.model_validate(
            {"base_url": "http://payments.test", "available": True, "checked_at": "2026-01-01T00:00:00Z"}
        )
    return BackendMode.fallback("http://payments.test", "connection refused")


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeHttp:
    """Stands in for requests.Session; records every call."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []
        self.closed = False

    def _send(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._send("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._send("POST", url, **kwargs)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakePaymentClient:
    def __init__(self, result):
        self.result = result
        self.payloads = []
        self.closed = False

    def submit(self, payload):
        self.payloads.append(payload)
        return self.result

    def close(self):
        self.closed = True


ORDER = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "landmark": "",
    "pincode": "560001",
}


def start_online_checkout(client) -> str:
    checkout = client.post("/api/checkout").json()
    client.post(f"/api/checkout/{checkout['id']}/cart")
    response = client.post(
        f"/api/checkout/{checkout['id']}/order",
        json={**ORDER, "payment_method": "Online"},
    )
    assert response.status_code == 200
    return response.json()["payment_session_id"]
