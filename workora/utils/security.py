import bcrypt

BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes; longer secrets are refused instead of silently truncated.
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes | None:
    if not password:
        return None
    encoded = password.encode("utf-8")
    return encoded if len(encoded) <= MAX_PASSWORD_BYTES else None


def hash_password(password: str) -> str:
    """Return the bcrypt hash for `password`; ValueError if empty or over 72 bytes."""
    if not password:
        raise ValueError("Password is required")
    encoded = _password_bytes(password)
    if encoded is None:
        raise ValueError(f"Password must be {MAX_PASSWORD_BYTES} bytes or less")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    encoded = _password_bytes(password)
    if encoded is None or not hashed:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False
