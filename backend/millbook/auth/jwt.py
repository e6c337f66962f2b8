"""JWT token creation and decoding.

Token claims:
  - sub:           user ID (as issued by the login service)
  - access_level:  "view" | "modify"
  - type:          "access"
  - exp:           expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from millbook.config import settings

ALGORITHM = settings.jwt_algorithm


class AccessLevel:
    VIEW = "view"
    MODIFY = "modify"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.VIEW, cls.MODIFY]


def create_access_token(
    user_id: int | str,
    access_level: str = AccessLevel.VIEW,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": str(user_id),
        "access_level": access_level,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
