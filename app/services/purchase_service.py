"""
app/services/purchase_service.py

Purpose: Purchase ledger

- Records a purchase once per verified gateway payment
- Flips the buyer's isNewUser flag and links the purchase
- Lists a user's purchase history
"""

import math
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from app.db.mongo import get_users_collection, get_purchases_collection
from app.models.purchase import new_purchase_document
from app.core.exceptions import DuplicatePaymentError, ResourceNotFoundError, TotalMismatchError
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)


def items_total(items: List[Dict[str, Any]]) -> float:
    return sum(item["qty"] * item["price"] for item in items)


async def _link_buyer(buyer_id: ObjectId, purchase_id: ObjectId):
    # $addToSet keeps the link idempotent when a replay repairs it
    return await get_users_collection().update_one(
        {"_id": buyer_id},
        {
            "$set": {"isNewUser": False},
            "$addToSet": {"purchases": purchase_id}
        }
    )


async def _link_existing_purchase(payment_id: str, buyer_id: ObjectId):
    """
    Completes the buyer update for an already-recorded payment.

    Covers a process that died between the purchase insert and the buyer
    update: the gateway or client retries, hits the unique index, and the
    buyer still gets flipped and linked.
    """
    existing = await get_purchases_collection().find_one({"paymentId": payment_id})
    if existing and existing["user"] == buyer_id:
        await _link_buyer(buyer_id, existing["_id"])


async def record_purchase(
    user_id: str,
    items: List[Dict[str, Any]],
    total: float,
    payment_id: str,
    address: str,
    order_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Writes the ledger entry for a payment whose signature was already verified.

    The purchase insert is gated by the unique index on paymentId. If the
    buyer update fails afterwards, the inserted purchase is deleted again.
    A replay of an already-recorded payment completes the buyer update
    before it is rejected.

    Args:
        user_id: Buyer id
        items: Line items ({bookId, qty, price, title})
        total: Client-stated total, must equal the sum of qty * price
        payment_id: Gateway payment id
        address: Shipping address
        order_id: Gateway order id

    Returns:
        Inserted purchase document

    Raises:
        TotalMismatchError: total disagrees with the items
        DuplicatePaymentError: payment_id was already recorded
        ResourceNotFoundError: the buyer does not exist
    """
    with LogContext(user_id=user_id, payment_id=payment_id):
        computed = items_total(items)
        if not math.isclose(computed, total, abs_tol=0.005):
            logger.warning(f"Purchase rejected: total {total} != items total {computed}")
            raise TotalMismatchError(details={"total": total, "items_total": computed})

        purchases = get_purchases_collection()
        buyer_id = ObjectId(user_id)

        purchase = new_purchase_document(
            user_id=buyer_id,
            items=items,
            total=total,
            payment_id=payment_id,
            address=address,
            order_id=order_id
        )

        try:
            result = await purchases.insert_one(purchase)
        except DuplicateKeyError:
            await _link_existing_purchase(payment_id, buyer_id)
            logger.warning("Purchase rejected: payment already recorded")
            raise DuplicatePaymentError()
        purchase["_id"] = result.inserted_id

        try:
            update = await _link_buyer(buyer_id, result.inserted_id)
        except Exception:
            await purchases.delete_one({"_id": result.inserted_id})
            logger.error("Buyer update failed, purchase rolled back", exc_info=True)
            raise

        if update.matched_count == 0:
            await purchases.delete_one({"_id": result.inserted_id})
            logger.error("Buyer not found, purchase rolled back")
            raise ResourceNotFoundError("User not found")

        logger.info(f"Purchase recorded: total={total}")
        return purchase


async def list_purchases(user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    """
    Returns the user's purchases, most recent first.
    """
    purchases = get_purchases_collection()
    cursor = purchases.find({"user": ObjectId(user_id)}).sort([("date", -1), ("_id", -1)]).limit(limit)
    return await cursor.to_list(length=limit)
