"""
app/services/twilio_service.py

Purpose: Twilio SMS sending

- Sends plain SMS via the Twilio Messages API
- Used to deliver OTP codes
"""

import httpx
from typing import Dict, Any, Optional
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class TwilioService:
    """Service for sending SMS via Twilio"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_PHONE_NUMBER
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}"
        self._transport = transport

    async def send_sms(self, to_phone: str, message: str) -> Dict[str, Any]:
        """
        Sends an SMS via Twilio

        Args:
            to_phone: Recipient phone (+919876543210)
            message: Message text

        Returns:
            {
                "success": True/False,
                "message_sid": "SMxxx...",
                "error": "Optional error message"
            }
        """
        if not self.is_configured():
            logger.error("Twilio is not configured")
            return {"success": False, "error": "Twilio is not configured"}

        try:
            url = f"{self.base_url}/Messages.json"

            data = {
                "From": self.from_number,
                "To": to_phone,
                "Body": message
            }

            logger.info("📤 Sending SMS")

            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                    timeout=settings.GATEWAY_TIMEOUT_SECONDS
                )

                if response.status_code in [200, 201]:
                    result = response.json()
                    logger.info(f"✅ SMS sent: SID={result.get('sid')}")

                    return {
                        "success": True,
                        "message_sid": result.get("sid"),
                        "status": result.get("status")
                    }
                else:
                    logger.error(f"❌ Twilio API error: {response.status_code} - {response.text}")

                    return {
                        "success": False,
                        "error": f"Twilio API error: {response.status_code}"
                    }

        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return {
                "success": False,
                "error": "Twilio API timeout"
            }
        except httpx.HTTPError as e:
            logger.error(f"Error sending Twilio SMS: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e)
            }

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(
            self.account_sid
            and self.auth_token
            and self.from_number
        )


# Singleton instance
twilio_service = TwilioService()
