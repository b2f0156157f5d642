"""
app/db/indexes.py

Purpose: Database index management

- Unique indexes that back identity and payment uniqueness
- TTL index for OTP challenge cleanup
"""

from app.db.mongo import (
    get_users_collection,
    get_purchases_collection,
    get_otp_collection
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        purchases = get_purchases_collection()
        otps = get_otp_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        # Sparse so OTP-only accounts without an email don't collide
        await users.create_index("email", unique=True, sparse=True, name="email_unique")
        logger.debug("Created unique index on users.email")

        await users.create_index("mobile", unique=True, sparse=True, name="mobile_unique")
        logger.debug("Created unique index on users.mobile")

        # ==============================================
        # PURCHASES COLLECTION INDEXES
        # ==============================================

        # One ledger entry per gateway payment
        await purchases.create_index("paymentId", unique=True, name="payment_id_unique")
        logger.debug("Created unique index on purchases.paymentId")

        await purchases.create_index(
            [("user", 1), ("date", -1)],
            name="user_purchases_idx"
        )
        logger.debug("Created compound index on purchases.user + date")

        # ==============================================
        # OTP CHALLENGES COLLECTION INDEXES
        # ==============================================

        await otps.create_index("mobile", unique=True, name="otp_mobile_unique")
        logger.debug("Created unique index on otp_challenges.mobile")

        # Expired challenges are rejected at verification time; this only
        # reclaims space
        await otps.create_index(
            "expires_at",
            expireAfterSeconds=0,
            name="otp_expiry_ttl_idx"
        )
        logger.debug("Created TTL index on otp_challenges.expires_at")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
