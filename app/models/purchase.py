"""
app/models/purchase.py

Purpose: Purchase ledger document model

- One document per verified gateway payment
- Line items, total, shipping address
- Immutable once written
"""

from datetime import datetime
from typing import Optional, Dict, Any, List


def new_purchase_document(
    user_id,
    items: List[Dict[str, Any]],
    total: float,
    payment_id: str,
    address: str,
    order_id: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "user": user_id,
        "items": items,
        "total": total,
        "paymentId": payment_id,
        "orderId": order_id,
        "address": address,
        "date": datetime.utcnow(),
    }


def serialize_purchase(purchase: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(purchase["_id"]),
        "user": str(purchase["user"]),
        "items": purchase.get("items", []),
        "total": purchase.get("total"),
        "paymentId": purchase.get("paymentId"),
        "orderId": purchase.get("orderId"),
        "address": purchase.get("address"),
        "date": purchase.get("date"),
    }
