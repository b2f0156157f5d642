"""
app/api/payments.py

Purpose: Checkout endpoints

- Opens gateway orders for the authenticated caller
- Verifies the gateway signature before anything is recorded
- Records the purchase in the ledger
"""

from decimal import Decimal, ROUND_HALF_UP

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id
from app.core.exceptions import SignatureMismatchError
from app.core.logging import get_logger, LogContext
from app.schemas.payment import CreateOrderRequest, CreateOrderResponse, VerifyPaymentRequest
from app.services import purchase_service
from app.services.payment_service import PaymentService, get_payment_service

logger = get_logger(__name__)
router = APIRouter()


def to_minor_units(amount: float) -> int:
    """Rupees to paise, rounding half up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    body: CreateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    payments: PaymentService = Depends(get_payment_service),
):
    with LogContext(user_id=user_id):
        order_id = await payments.create_order(to_minor_units(body.amount))
    return {"id": order_id}


@router.post("/verify-payment")
async def verify_payment(
    body: VerifyPaymentRequest,
    user_id: str = Depends(get_current_user_id),
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Trusts the payment only if the gateway signature verifies.
    Items, total and address are caller-supplied.
    """
    with LogContext(user_id=user_id, order_id=body.order_id, payment_id=body.payment_id):
        if not payments.verify_callback(body.order_id, body.payment_id, body.signature):
            logger.warning("Payment signature mismatch")
            raise SignatureMismatchError()

        await purchase_service.record_purchase(
            user_id=user_id,
            items=[item.model_dump() for item in body.items],
            total=body.total,
            payment_id=body.payment_id,
            address=body.address,
            order_id=body.order_id,
        )
    return {"ok": True}
