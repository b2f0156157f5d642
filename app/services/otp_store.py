"""
app/services/otp_store.py

Purpose: Keyed storage for OTP challenges

- One live challenge per mobile, last writer wins
- Expiry is carried with the challenge and checked by the caller
- In-memory backend for single-instance deployments
- MongoDB backend (TTL indexed) for multi-instance deployments
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from app.db.mongo import get_otp_collection


@dataclass(frozen=True)
class OtpChallenge:
    code: str
    expires_at: datetime


class InMemoryOtpStore:
    """Process-local store. Only safe with a single server instance."""

    def __init__(self):
        self._challenges: Dict[str, OtpChallenge] = {}

    async def put(self, mobile: str, challenge: OtpChallenge, now: Optional[datetime] = None):
        """Stores the challenge, first evicting any that expired by `now`."""
        if now is not None:
            expired = [key for key, value in self._challenges.items() if value.expires_at <= now]
            for key in expired:
                del self._challenges[key]
        self._challenges[mobile] = challenge

    async def get(self, mobile: str) -> Optional[OtpChallenge]:
        return self._challenges.get(mobile)

    async def discard(self, mobile: str, code: str) -> bool:
        """
        Removes the challenge only if it still holds `code`.

        Returns:
            True if this call removed it
        """
        current = self._challenges.get(mobile)
        if current is None or current.code != code:
            return False
        del self._challenges[mobile]
        return True


class MongoOtpStore:
    """Challenges in the otp_challenges collection, shared across instances."""

    async def put(self, mobile: str, challenge: OtpChallenge, now: Optional[datetime] = None):
        # Expired documents are reclaimed by the TTL index
        await get_otp_collection().update_one(
            {"mobile": mobile},
            {"$set": {"code": challenge.code, "expires_at": challenge.expires_at}},
            upsert=True
        )

    async def get(self, mobile: str) -> Optional[OtpChallenge]:
        doc = await get_otp_collection().find_one({"mobile": mobile})
        if not doc:
            return None
        return OtpChallenge(code=doc["code"], expires_at=doc["expires_at"])

    async def discard(self, mobile: str, code: str) -> bool:
        result = await get_otp_collection().delete_one({"mobile": mobile, "code": code})
        return result.deleted_count == 1
