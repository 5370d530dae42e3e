from datetime import datetime, timedelta, timezone
import secrets
from typing import Optional
from jose import jwt, JWTError
from gamekeys.config.settings import config_settings

JWT_SECRET = config_settings.JWT_SECRET
JWT_ALGO = config_settings.JWT_ALGO
ACCESS_TOKEN_EXPIRE_MINUTES = int(config_settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_access_token(user_id: str, email: Optional[str] = None, expires_dur: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Mint a token the way the identity provider does; used by seed scripts and tests."""
    now=datetime.now(timezone.utc)
    expiry= now + (timedelta(minutes=expires_dur))

    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expiry.timestamp()),
        "jti": secrets.token_hex(16),
    }
    if email:
        payload["email"] = email
    return jwt.encode(claims=payload, key=JWT_SECRET, algorithm=JWT_ALGO)


def decode_token(token:str):
    """To verify the signature , expiration and user claims of token"""
    try:
        return jwt.decode(token, key=JWT_SECRET, algorithms=[JWT_ALGO])
    except JWTError:
        return None
