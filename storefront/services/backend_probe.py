import logging
from datetime import datetime, timezone
from typing import Optional

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class BackendMode(BaseModel):
    """Whether local payments go to the backend or stay simulated. Resolved once."""

    base_url: str
    available: bool
    reason: Optional[str] = None
    checked_at: datetime

    @classmethod
    def fallback(cls, base_url: str, reason: str) -> "BackendMode":
        return cls(
            base_url=base_url,
            available=False,
            reason=reason,
            checked_at=datetime.now(timezone.utc),
        )


def probe_backend(
    base_url: str,
    *,
    timeout: float = 3.0,
    http: requests.Session = None,
) -> BackendMode:
    """
    Single GET {base_url}/health. No retry.

    Any 2xx means available; non-OK responses and network errors put the
    storefront in fallback mode. Never raises.
    """
    if http is None:
        with requests.Session() as http:
            return _check_health(http, base_url, timeout)
    return _check_health(http, base_url, timeout)


def _check_health(http: requests.Session, base_url: str, timeout: float) -> BackendMode:
    url = f"{base_url.rstrip('/')}/health"

    try:
        response = http.get(
            url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning(f"Backend connection error ({url}): {e}")
        return BackendMode.fallback(base_url, f"connection error: {e}")

    if not response.ok:
        logger.warning(f"Backend health check failed ({response.status_code})")
        return BackendMode.fallback(base_url, f"health returned {response.status_code}")

    logger.info("Backend is available")
    return BackendMode(
        base_url=base_url,
        available=True,
        checked_at=datetime.now(timezone.utc),
    )
