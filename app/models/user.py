"""
app/models/user.py

Purpose: User document model

- Identity by email and/or mobile
- bcrypt password hash (absent for OTP-only accounts)
- isNewUser flag, flipped on first purchase
- Purchase references
"""

from datetime import datetime
from typing import Optional, Dict, Any


def new_user_document(
    name: Optional[str] = None,
    email: Optional[str] = None,
    mobile: Optional[str] = None,
    password_hash: Optional[str] = None
) -> Dict[str, Any]:
    """
    Builds a users document.

    Absent identifiers are left out of the document entirely so the sparse
    unique indexes skip them.
    """
    user = {
        "isNewUser": True,
        "purchases": [],
        "created_at": datetime.utcnow(),
    }
    if name:
        user["name"] = name
    if email:
        user["email"] = email
    if mobile:
        user["mobile"] = mobile
    if password_hash:
        user["password"] = password_hash
    return user


def serialize_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Public profile view of a user document (never includes the hash)."""
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "mobile": user.get("mobile"),
        "isNewUser": user.get("isNewUser", True),
        "purchases": [str(p) for p in user.get("purchases", [])],
    }
