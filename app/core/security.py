"""Password hashing and opaque session token generation."""

import secrets

import bcrypt

# Bcrypt cost (rounds) used when none is given; settings.BCRYPT_ROUNDS overrides it.
BCRYPT_ROUNDS = 12

# 32 random bytes -> 256 bits of entropy, hex encoded (64 chars).
TOKEN_BYTES = 32

# Upper bounds for credential fields (input validation).
USERNAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def generate_token() -> str:
    """Return a new unguessable session token."""
    return secrets.token_hex(TOKEN_BYTES)
