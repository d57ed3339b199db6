"""Password hashing with bcrypt.

hash_password salts every call, so two hashes of one password differ.
verify_password never raises on a mismatch or a malformed stored hash.
"""

import logging
from functools import lru_cache

import bcrypt

from lyricauth.core.errors import ValidationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of input
MAX_PASSWORD_BYTES = 72

DEFAULT_ROUNDS = 12

# Pre-computed cost-12 bcrypt hash for timing-safe comparison on account-not-found.
# Security: prevents account enumeration via response time differences.
DUMMY_HASH = b"$2b$12$ZP2PVB8yI35X.mkRqcUPUuSzJA1CNRt4dZ7X3cyrfJu.2S3w.Qen2"


def validate_password(password: str) -> None:
    """Reject passwords bcrypt cannot hash faithfully.

    Args:
        password: Plain-text password.

    Raises:
        ValidationError: If the password is empty or longer than 72 bytes.
    """
    if not password:
        raise ValidationError("Password is required")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        )


def hash_password(password: str, *, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with a fresh salt.

    Args:
        password: Plain-text password.
        rounds: bcrypt cost factor.

    Returns:
        bcrypt hash as a str (salt and cost embedded).

    Raises:
        ValidationError: If the password fails validate_password().
    """
    validate_password(password)
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str | bytes | None) -> bool:
    """Check a password against a stored bcrypt hash.

    Args:
        password: Plain-text password to check.
        password_hash: Stored hash. None or empty always fails.

    Returns:
        True if the password matches, False otherwise.
    """
    if not password or not password_hash:
        return False
    hashed = (
        password_hash.encode() if isinstance(password_hash, str) else password_hash
    )
    try:
        return bcrypt.checkpw(password.encode(), hashed)
    except ValueError:
        # Malformed stored hash, or input bcrypt refuses (e.g. > 72 bytes)
        logger.warning("bcrypt rejected password check input")
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> bytes:
    """Dummy bcrypt hash at the given cost factor, built once per cost."""
    if rounds == DEFAULT_ROUNDS:
        return DUMMY_HASH
    return bcrypt.hashpw(b"lyricauth-dummy-password", bcrypt.gensalt(rounds=rounds))


def burn_dummy_check(password: str, *, rounds: int = DEFAULT_ROUNDS) -> None:
    """Spend one bcrypt comparison when no account exists.

    Keeps the unknown-email path as slow as the wrong-password path, as
    long as rounds matches the cost used by hash_password.
    """
    verify_password(password, dummy_hash(rounds))
