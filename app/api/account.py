"""
app/api/account.py

Purpose: Authenticated account endpoints

- Profile of the caller
- Purchase history
- Invoice email with book PDFs
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id
from app.core.exceptions import ResourceNotFoundError
from app.models.purchase import serialize_purchase
from app.models.user import serialize_user
from app.schemas.payment import SendPdfEmailRequest
from app.services import purchase_service, user_service
from app.services.email_service import EmailService, get_email_service
from app.services.invoice_service import send_purchase_email

router = APIRouter()


async def _load_user(user_id: str):
    user = await user_service.get_user_by_id(user_id)
    if not user:
        raise ResourceNotFoundError("User not found")
    return user


@router.get("/me")
async def get_profile(user_id: str = Depends(get_current_user_id)):
    return serialize_user(await _load_user(user_id))


@router.get("/purchases")
async def get_purchases(user_id: str = Depends(get_current_user_id)):
    purchases = await purchase_service.list_purchases(user_id)
    return [serialize_purchase(p) for p in purchases]


@router.post("/send-pdf-email")
async def send_pdf_email(
    body: SendPdfEmailRequest,
    user_id: str = Depends(get_current_user_id),
    email: EmailService = Depends(get_email_service),
):
    user = await _load_user(user_id)
    await send_purchase_email(
        email,
        user,
        [item.model_dump() for item in body.items],
        body.address,
    )
    return {"sent": True}
