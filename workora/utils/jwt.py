from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

ALGORITHM = "HS256"
# No refresh tokens: a session token stays valid for its whole lifetime.
ACCESS_TOKEN_EXPIRE = timedelta(days=15)
RESET_TOKEN_EXPIRE = timedelta(minutes=15)
RESET_TOKEN_TYPE = "reset"


def _encode(claims: dict, secret: str, expires_in: timedelta) -> str:
    to_encode = claims.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_in})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def create_access_token(user_id: int, secret: str) -> str:
    return _encode({"id": int(user_id)}, secret, ACCESS_TOKEN_EXPIRE)


def create_reset_token(email: str, secret: str) -> str:
    return _encode({"email": email, "type": RESET_TOKEN_TYPE}, secret, RESET_TOKEN_EXPIRE)


def decode_token(token: str, secret: str) -> dict:
    """Verify signature and expiry; raises jose.JWTError on any failure."""
    return jwt.decode(token, secret, algorithms=[ALGORITHM])


def decode_reset_token(token: str, secret: str) -> str | None:
    """Return the email carried by a valid reset token, else None."""
    try:
        payload = decode_token(token, secret)
    except JWTError:
        return None
    if payload.get("type") != RESET_TOKEN_TYPE or not payload.get("email"):
        return None
    return str(payload["email"])
