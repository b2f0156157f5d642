"""
app/api/auth.py

Purpose: Identity endpoints

- Registration and password login
- OTP send / verify
- Each success returns a fresh session token
"""

from fastapi import APIRouter, Depends

from app.core.exceptions import InvalidCredentialsError
from app.core.logging import get_logger
from app.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    SendOtpRequest,
    SessionResponse,
    VerifyOtpRequest,
)
from app.services import user_service
from app.services.otp_service import OtpService, get_otp_service
from app.services.token_service import TokenService, get_token_service

logger = get_logger(__name__)
router = APIRouter()


@router.post("/register", response_model=SessionResponse)
async def register(
    body: RegisterRequest,
    tokens: TokenService = Depends(get_token_service),
):
    user = await user_service.register(
        password=body.password,
        name=body.name,
        email=body.email,
        mobile=body.mobile,
    )
    return {"token": tokens.issue(str(user["_id"])), "isNewUser": True}


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    tokens: TokenService = Depends(get_token_service),
):
    """
    Password login by email or mobile.
    Unknown identifier and wrong password give the same error.
    """
    user = await user_service.find_by_email_or_mobile(body.id)
    if not user or not await user_service.verify_password(user, body.password):
        raise InvalidCredentialsError()

    logger.info("User logged in", extra={"user_id": str(user["_id"])})
    return {"token": tokens.issue(str(user["_id"])), "isNewUser": user.get("isNewUser", True)}


@router.post("/send-otp")
async def send_otp(
    body: SendOtpRequest,
    otp: OtpService = Depends(get_otp_service),
):
    await otp.request_challenge(body.mobile)
    return {"msg": "sent"}


@router.post("/verify-otp", response_model=SessionResponse)
async def verify_otp(
    body: VerifyOtpRequest,
    otp: OtpService = Depends(get_otp_service),
    tokens: TokenService = Depends(get_token_service),
):
    user = await otp.verify_challenge(body.mobile, body.otp)
    return {"token": tokens.issue(str(user["_id"])), "isNewUser": user.get("isNewUser", True)}
