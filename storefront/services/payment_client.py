import logging

import requests
from pydantic import ValidationError

from storefront.schemas.payment_schemas import LocalPaymentResponse

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Connection error. Please try again."
GENERIC_FAILURE = "Payment processing failed"


class LocalPaymentClient:
    """Talks to POST {backend}/api/local-payment."""

    def __init__(self, base_url: str, timeout: float = 10.0, http: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/local-payment"

    def submit(self, payload: dict) -> LocalPaymentResponse:
        """
        Send one payment request.

        Transport problems and server-declared failures both come back as
        ``success=False`` with a display-ready ``error``; nothing is raised
        and nothing is retried.
        """
        try:
            response = self.http.post(
                self.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            data = LocalPaymentResponse.model_validate(response.json())
        except (requests.RequestException, ValueError, ValidationError) as e:
            logger.error(f"Payment error ({self.endpoint}): {e}")
            return LocalPaymentResponse(success=False, error=CONNECTION_ERROR)

        if response.ok and data.success:
            logger.info(f"Local payment accepted, order {data.order_id}")
            return data

        error = data.error or GENERIC_FAILURE
        logger.error(f"Local payment rejected ({response.status_code}): {error}")
        return LocalPaymentResponse(success=False, error=error)

    def close(self):
        self.http.close()
