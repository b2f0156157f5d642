"""
app/services/payment_service.py

Purpose: Payment order coordinator (Razorpay)

- Opens gateway-side orders for an amount in minor units
- Authenticates gateway callbacks by HMAC signature
"""

import hashlib
import hmac
import time
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import GatewayError
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256 hex digest over "<order_id>|<payment_id>"."""
    message = f"{order_id}|{payment_id}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


class PaymentService:
    """
    Talks to the Razorpay Orders API and verifies its payment callbacks.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.base_url = (base_url or settings.RAZORPAY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.key_id or "", self.key_secret or ""),
                timeout=self.timeout,
                transport=self._transport
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def create_order(self, amount: int, currency: Optional[str] = None) -> str:
        """
        Opens an order on the gateway.

        Args:
            amount: Amount in minor currency units (paise for INR)
            currency: ISO currency code (defaults to PAYMENT_CURRENCY)

        Returns:
            Gateway order id

        Raises:
            GatewayError: On any upstream failure; never retried here
        """
        payload = {
            "amount": amount,
            "currency": currency or settings.PAYMENT_CURRENCY,
            "receipt": f"receipt_{int(time.time() * 1000)}",
        }

        try:
            response = await self._get_client().post("/orders", json=payload)
        except httpx.TimeoutException:
            logger.error("Payment gateway timeout")
            raise GatewayError("Payment gateway timeout")
        except httpx.HTTPError as e:
            logger.error(f"Payment gateway request failed: {e}")
            raise GatewayError("Payment gateway unreachable")

        if response.status_code not in (200, 201):
            logger.error(f"Payment gateway error: {response.status_code} - {response.text}")
            raise GatewayError(
                "Payment gateway rejected the order",
                details={"status_code": response.status_code}
            )

        try:
            order: Dict[str, Any] = response.json()
        except ValueError:
            raise GatewayError("Payment gateway returned an invalid response")

        order_id = order.get("id")
        if not order_id:
            raise GatewayError("Payment gateway returned no order id")

        with LogContext(order_id=order_id):
            logger.info(f"Gateway order created for {payload['amount']} {payload['currency']}")
        return order_id

    def verify_callback(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Checks a gateway callback signature in constant time.

        Returns:
            True only if `signature` is the HMAC of "<order_id>|<payment_id>"
            under the gateway secret. Never raises.
        """
        if not (self.key_secret and order_id and payment_id and signature):
            return False
        try:
            expected = compute_signature(self.key_secret, order_id, payment_id)
            return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
        except (TypeError, AttributeError, UnicodeError):
            return False


payment_service = PaymentService()


def get_payment_service() -> PaymentService:
    return payment_service
