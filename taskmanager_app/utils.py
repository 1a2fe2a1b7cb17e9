"""Utility functions for password hashing and email normalization."""

from passlib.context import CryptContext

# plain bcrypt stops at 72 bytes; bcrypt_sha256 covers the whole password
_pwd_context = CryptContext(schemes=["bcrypt_sha256", "bcrypt"], deprecated="auto")

# verified against when the login email is unknown, so both paths pay for bcrypt
_DUMMY_HASH = _pwd_context.hash("timing-equalizer")


def normalize_email(email: str | None) -> str:
    """Return the canonical (trimmed, lower-cased) form of an email."""
    return (email or "").strip().lower()


# ---------- Password hashing ----------
def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt over its SHA-256 digest."""
    return _pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Verify a plaintext password against its bcrypt hash.

    A missing or unparseable hash never matches.
    """
    if not hashed:
        _pwd_context.verify(plain, _DUMMY_HASH)
        return False
    try:
        return _pwd_context.verify(plain, hashed)
    except ValueError:
        return False
