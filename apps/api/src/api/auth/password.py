"""Password hashing utilities using bcrypt.

Uses passlib with bcrypt for secure password hashing. Accounts created
before hashing was introduced still hold plaintext passwords; those are
compared in constant time and flagged for re-hashing on next login.
"""

import hmac

from passlib.context import CryptContext

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_PREFIX = "$2"


def is_hashed(stored_password: str | None) -> bool:
    """Check if a stored password is a bcrypt hash."""
    return bool(stored_password) and stored_password.startswith(BCRYPT_PREFIX)


def verify_password(plain_password: str, stored_password: str | None) -> bool:
    """Verify a password against a stored bcrypt hash or legacy plaintext.

    Args:
        plain_password: The plaintext password to verify.
        stored_password: The stored value (bcrypt hash or legacy plaintext).

    Returns:
        True if the password matches, False otherwise.
    """
    if not stored_password or not plain_password:
        return False

    if is_hashed(stored_password):
        return pwd_context.verify(plain_password, stored_password)

    return hmac.compare_digest(
        plain_password.encode("utf-8"), stored_password.encode("utf-8")
    )


def needs_rehash(stored_password: str | None) -> bool:
    """True for legacy plaintext values and outdated hashes."""
    if not is_hashed(stored_password):
        return True
    return pwd_context.needs_update(stored_password)


def get_password_hash(password: str) -> str:
    """Generate a bcrypt hash of a password.

    Args:
        password: The plaintext password to hash.

    Returns:
        The bcrypt hash of the password.
    """
    return pwd_context.hash(password)
