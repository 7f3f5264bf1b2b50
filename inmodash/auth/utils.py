"""JWT handling for agency account tokens."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from inmodash.config import settings

# JWT settings
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = 7


def create_access_token(user_id: str, email: str, expires_days: int = ACCESS_TOKEN_EXPIRE_DAYS) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": user_id,
        "email": email,
        "exp": now + timedelta(days=expires_days),
        "iat": now,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT access token.

    Returns the payload if valid, None otherwise.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
