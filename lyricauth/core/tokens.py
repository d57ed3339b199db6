"""Verification token generation and digesting.

Only the SHA-256 digest of a token is stored. Tokens are 32 random bytes,
so an unsalted deterministic digest is safe and doubles as the lookup key.
"""

import hashlib
import secrets

TOKEN_BYTES = 32


def digest_token(raw_token: str) -> str:
    """Return the hex SHA-256 digest of a raw token.

    Args:
        raw_token: Token string as delivered to the user.

    Returns:
        64-character lowercase hex digest.
    """
    return hashlib.sha256(raw_token.encode()).hexdigest()


def generate_token() -> tuple[str, str]:
    """Generate a verification token and its digest.

    Returns:
        (raw_token, token_hash): raw for the link, hash for DB storage.
    """
    raw = secrets.token_hex(TOKEN_BYTES)
    return raw, digest_token(raw)
