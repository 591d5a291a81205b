from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt

from pawmatch.config import settings

ALGORITHM = "HS256"


def create_access_token(user_id: UUID | str) -> str:
    """Mint a bearer token. Tokens are normally issued by the auth service."""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode = {
        "sub": str(user_id),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> UUID | None:
    """Return the user id carried in the token, or None when it is unusable."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return UUID(payload["sub"])
    except (JWTError, KeyError, ValueError):
        return None
