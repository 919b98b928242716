"""
Volume Authorization Key Utilities

The master only accepts destructive or mutating volume calls that carry an
authorization key derived from the volume owner. The key is the lowercase
hex MD5 digest of the owner identifier.
Uses stdlib only - no external crypto libraries.
"""

import hashlib
import hmac


def calc_auth_key(owner: str) -> str:
    """
    Derive the authorization key for a volume owner.

    Args:
        owner: Owner user identifier

    Returns:
        Lowercase hex MD5 digest (32 hex chars)
    """
    return hashlib.md5(owner.encode("utf-8")).hexdigest().lower()


def verify_auth_key(owner: str, auth_key: str) -> bool:
    """
    Check a presented authorization key against the volume owner.

    Args:
        owner: Current owner of the volume
        auth_key: Key sent by the client

    Returns:
        True if the key matches the owner, False otherwise
    """
    if not auth_key:
        return False
    # Use hmac.compare_digest to prevent timing attacks
    return hmac.compare_digest(calc_auth_key(owner), auth_key.lower())
