from datetime import datetime, timedelta
from jose import JWTError, jwt

from ..config import (
    IDENTITY_JWT_ALGORITHM,
    IDENTITY_JWT_AUDIENCE,
    IDENTITY_JWT_ISSUER,
    IDENTITY_JWT_SECRET,
)

# Only used for tokens minted locally (dev tooling, tests); production tokens
# come from the identity provider with their own expiry.
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24


def create_access_token(data: dict, *, secret: str | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    if IDENTITY_JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = IDENTITY_JWT_AUDIENCE
    if IDENTITY_JWT_ISSUER and "iss" not in to_encode:
        to_encode["iss"] = IDENTITY_JWT_ISSUER
    return jwt.encode(to_encode, secret or IDENTITY_JWT_SECRET, algorithm=IDENTITY_JWT_ALGORITHM)


def decode_access_token(token: str, *, secret: str | None = None) -> dict | None:
    """Return the verified claims, or None for a bad/expired token."""
    options = {"verify_aud": bool(IDENTITY_JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            secret or IDENTITY_JWT_SECRET,
            algorithms=[IDENTITY_JWT_ALGORITHM],
            audience=IDENTITY_JWT_AUDIENCE,
            issuer=IDENTITY_JWT_ISSUER,
            options=options,
        )
    except JWTError:
        return None
