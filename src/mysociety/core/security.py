"""Password digest helpers."""
from __future__ import annotations

import hashlib
import hmac


def hash_key(user_key: str) -> str:
    """Return a SHA-256 hash of the provided user key."""
    return hashlib.sha256(user_key.encode("utf-8")).hexdigest()


def verify_key(user_key: str, hashed_key: str) -> bool:
    """Check a plain key against a stored digest in constant time."""
    return hmac.compare_digest(hash_key(user_key), hashed_key)
