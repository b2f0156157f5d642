"""
app/services/token_service.py

Purpose: Session token issuer

- Mints HS256 JWTs carrying the user id
- Verifies signature and expiry on every authenticated request
"""

from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError

from app.core.config import settings
from app.core.exceptions import InvalidTokenError
from app.core.logging import get_logger

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"


class TokenService:
    def __init__(self, secret: Optional[str] = None, ttl_days: Optional[int] = None):
        self.secret = secret or settings.JWT_SECRET
        self.ttl = timedelta(days=ttl_days or settings.SESSION_TTL_DAYS)

    def issue(self, user_id: str, now: Optional[datetime] = None) -> str:
        """
        Creates a signed session token for the user.

        Args:
            user_id: User id to embed in the `id` claim
            now: Issuance instant (defaults to the current UTC time)
        """
        issued_at = now or datetime.utcnow()
        payload = {
            "id": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> str:
        """
        Verifies a session token.

        Returns:
            The user id carried by the token

        Raises:
            InvalidTokenError: Bad signature, wrong algorithm, expired, or no id claim
        """
        try:
            # Pinning the algorithm list rejects "none" and asymmetric-key confusion
            payload = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            logger.info(f"Token rejected: {e}")
            raise InvalidTokenError()

        user_id = payload.get("id")
        if not user_id or not isinstance(user_id, str):
            raise InvalidTokenError()
        return user_id


token_service = TokenService()


def get_token_service() -> TokenService:
    return token_service
