"""
app/api/deps.py

Purpose: Auth gateway

- Extracts the bearer token from the Authorization header
- Verifies it and exposes the caller's user id to routes
"""

from typing import Optional

from fastapi import Depends, Header, Request

from app.core.exceptions import InvalidTokenError, MissingCredentialError
from app.services.token_service import TokenService, get_token_service


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """
    Resolves the caller's user id from a bearer token.

    Raises:
        MissingCredentialError: No Authorization header
        InvalidTokenError: Header present but not a valid bearer token
    """
    if authorization is None:
        raise MissingCredentialError()

    token = extract_bearer_token(authorization)
    if token is None:
        raise InvalidTokenError()

    user_id = tokens.verify(token)
    request.state.user_id = user_id
    return user_id
