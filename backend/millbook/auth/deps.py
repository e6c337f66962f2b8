"""FastAPI dependencies for authentication and authorization.

Users live in the login service; this service trusts the signed claims
and never loads a user row.

Dependencies:
  get_current_actor   → decode JWT, return the Actor it describes
  require_modify      → restrict to actors allowed to change bookings
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from millbook.auth.jwt import AccessLevel, decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


@dataclass(frozen=True)
class Actor:
    id: int
    access_level: str

    @property
    def can_modify(self) -> bool:
        return self.access_level == AccessLevel.MODIFY


# ── Core actor dependency ───────────────────────────────────

async def get_current_actor(token: str = Depends(oauth2_scheme)) -> Actor:
    """Decode the bearer token into an Actor, or raise 401."""
    payload = decode_token(token)
    sub = payload.get("sub")
    access_level = payload.get("access_level")
    if (
        not sub
        or payload.get("type") != "access"
        or access_level not in AccessLevel.all()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        actor_id = int(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    return Actor(id=actor_id, access_level=access_level)


# ── Capability check ────────────────────────────────────────

async def require_modify(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Restrict an endpoint to actors holding the modify capability."""
    if not actor.can_modify:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Modify access required",
        )
    return actor
