"""
app/schemas/payment.py

Purpose: Checkout request schemas

- Gateway order creation
- Payment verification callback forwarded by the client
- Invoice email request
"""

from pydantic import AliasChoices, BaseModel, Field
from typing import List


class LineItem(BaseModel):
    bookId: int
    qty: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    title: str


class CreateOrderRequest(BaseModel):
    amount: float = Field(..., gt=0, description="Amount in major currency units (rupees)")


class CreateOrderResponse(BaseModel):
    id: str


class VerifyPaymentRequest(BaseModel):
    """
    Accepts Razorpay's checkout field names as well as gateway-neutral ones.
    """
    payment_id: str = Field(
        ...,
        validation_alias=AliasChoices("razorpay_payment_id", "gatewayPaymentId")
    )
    order_id: str = Field(
        ...,
        validation_alias=AliasChoices("razorpay_order_id", "gatewayOrderId")
    )
    signature: str = Field(
        ...,
        validation_alias=AliasChoices("razorpay_signature", "signature")
    )
    items: List[LineItem] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    address: str = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "razorpay_order_id": "order_abc",
                "razorpay_payment_id": "pay_xyz",
                "razorpay_signature": "<hex hmac>",
                "items": [{"bookId": 1, "qty": 1, "price": 500, "title": "Gitanjali"}],
                "total": 500,
                "address": "12 MG Road, Pune"
            }
        }


class SendPdfEmailRequest(BaseModel):
    items: List[LineItem] = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
