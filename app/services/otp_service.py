"""
app/services/otp_service.py

Purpose: OTP challenge manager

- Issues 6-digit codes bound to a mobile number
- Dispatches codes by SMS
- Verifies codes once, within the expiry window
- Resolves the verified mobile to a user
"""

import hmac
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from app.core.config import settings
from app.core.exceptions import DeliveryError, ExpiredOrInvalidOtpError
from app.core.logging import get_logger, LogContext
from app.services import user_service
from app.services.otp_store import OtpChallenge, InMemoryOtpStore, MongoOtpStore
from app.services.twilio_service import twilio_service

logger = get_logger(__name__)


def generate_otp() -> str:
    """Uniformly random code in 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


class OtpService:
    """
    Issues and validates OTP challenges.

    A failed SMS dispatch rolls back the challenge it just stored, so a
    caller who saw DeliveryError never holds a usable code.
    """

    def __init__(
        self,
        store,
        sms_sender,
        expiry_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.store = store
        self.sms_sender = sms_sender
        self.expiry = timedelta(minutes=expiry_minutes or settings.OTP_EXPIRY_MINUTES)
        self.clock = clock

    async def request_challenge(self, mobile: str):
        """
        Stores a fresh challenge for the mobile (replacing any previous one)
        and sends the code by SMS.

        Raises:
            DeliveryError: If the SMS could not be sent
        """
        with LogContext(mobile=mobile):
            code = generate_otp()
            now = self.clock()
            await self.store.put(mobile, OtpChallenge(code=code, expires_at=now + self.expiry), now=now)

            try:
                result = await self.sms_sender.send_sms(mobile, f"{settings.BRAND_NAME} OTP: {code}")
            except Exception as e:
                result = {"success": False, "error": str(e) or type(e).__name__}
                logger.error("SMS sender raised", exc_info=True)

            if not result.get("success"):
                await self.store.discard(mobile, code)
                logger.warning(f"OTP dispatch failed, challenge rolled back: {result.get('error')}")
                raise DeliveryError("Could not send OTP", details={"reason": result.get("error")})

            logger.info("OTP challenge issued")

    async def verify_challenge(self, mobile: str, code: str) -> Dict[str, Any]:
        """
        Consumes the challenge for the mobile if `code` matches and it is unexpired.

        Returns:
            The user owning the mobile (created if unseen)

        Raises:
            ExpiredOrInvalidOtpError: No challenge, expired, wrong code, or already used
        """
        with LogContext(mobile=mobile):
            challenge = await self.store.get(mobile)
            if challenge is None:
                logger.info("OTP rejected: no challenge")
                raise ExpiredOrInvalidOtpError()

            if self.clock() >= challenge.expires_at:
                await self.store.discard(mobile, challenge.code)
                logger.info("OTP rejected: expired")
                raise ExpiredOrInvalidOtpError()

            if not code or not hmac.compare_digest(challenge.code.encode(), code.encode()):
                logger.info("OTP rejected: code mismatch")
                raise ExpiredOrInvalidOtpError()

            # A concurrent verification may have consumed it between get and here
            if not await self.store.discard(mobile, challenge.code):
                logger.info("OTP rejected: already consumed")
                raise ExpiredOrInvalidOtpError()

            user = await user_service.get_or_create_by_mobile(mobile)
            logger.info("OTP verified", extra={"user_id": str(user["_id"])})
            return user


_otp_service: Optional[OtpService] = None


def get_otp_service() -> OtpService:
    """Returns the process-wide OTP service, building it on first use."""
    global _otp_service
    if _otp_service is None:
        store = MongoOtpStore() if settings.OTP_STORE_BACKEND == "mongo" else InMemoryOtpStore()
        _otp_service = OtpService(store=store, sms_sender=twilio_service)
    return _otp_service
