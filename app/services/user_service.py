"""
app/services/user_service.py

Purpose: Credential store

- Registers users with a bcrypt password hash
- Looks users up by email or mobile
- Verifies passwords
- Resolves or creates OTP-only users by mobile
"""

import asyncio
from typing import Optional, Dict, Any

import bcrypt
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from app.db.mongo import get_users_collection
from app.models.user import new_user_document
from app.core.exceptions import ConflictError, ValidationError
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 6


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _validate_password(password: str):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


async def register(
    password: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    mobile: Optional[str] = None
) -> Dict[str, Any]:
    """
    Creates a new password-backed user.

    Args:
        password: Plaintext password (only its hash is stored)
        name: Optional display name
        email: Optional email, unique if present
        mobile: Optional mobile, unique if present

    Returns:
        Inserted user document

    Raises:
        ValidationError: If neither email nor mobile is given, or the password is unusable
        ConflictError: If the email or mobile is already registered
    """
    if not email and not mobile:
        raise ValidationError("Either email or mobile is required")
    _validate_password(password)

    with LogContext(mobile=mobile):
        users = get_users_collection()

        clauses = []
        if email:
            clauses.append({"email": email})
        if mobile:
            clauses.append({"mobile": mobile})
        if await users.find_one({"$or": clauses}):
            logger.info("Registration rejected: identifier already registered")
            raise ConflictError("Email or mobile already registered")

        password_hash = await asyncio.to_thread(_hash_password, password)
        user = new_user_document(name=name, email=email, mobile=mobile, password_hash=password_hash)

        # The unique indexes catch registrations racing past the check above
        try:
            result = await users.insert_one(user)
        except DuplicateKeyError:
            logger.info("Registration rejected by unique index")
            raise ConflictError("Email or mobile already registered")

        user["_id"] = result.inserted_id
        logger.info("New user registered", extra={"user_id": str(result.inserted_id)})
        return user


async def find_by_email_or_mobile(identifier: str) -> Optional[Dict[str, Any]]:
    """
    Finds a user whose email or mobile equals the identifier.
    """
    if not identifier:
        return None
    users = get_users_collection()
    return await users.find_one({"$or": [{"email": identifier}, {"mobile": identifier}]})


async def verify_password(user: Dict[str, Any], password: str) -> bool:
    """
    Checks a plaintext password against the user's stored hash.
    OTP-only users have no hash and never match.
    """
    password_hash = user.get("password")
    if not password_hash or not password:
        return False
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    return await asyncio.to_thread(_check_password, password, password_hash)


async def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Retrieves a user by its string id.

    Returns:
        User document or None if not found / not a valid id
    """
    try:
        oid = ObjectId(user_id)
    except (InvalidId, TypeError):
        return None
    users = get_users_collection()
    return await users.find_one({"_id": oid})


async def get_or_create_by_mobile(mobile: str) -> Dict[str, Any]:
    """
    Resolves the user owning a mobile, creating an OTP-only user if none exists.
    """
    with LogContext(mobile=mobile):
        users = get_users_collection()

        user = await users.find_one({"mobile": mobile})
        if user:
            return user

        user = new_user_document(mobile=mobile)
        try:
            result = await users.insert_one(user)
        except DuplicateKeyError:
            # A concurrent verification created the same user first
            return await users.find_one({"mobile": mobile})

        user["_id"] = result.inserted_id
        logger.info("New OTP user created", extra={"user_id": str(result.inserted_id)})
        return user
