# liveshare/auth.py
# Actor resolution: bearer credential -> {id, name, email}

from __future__ import annotations

from typing import Any, Dict, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from liveshare.config import settings
from liveshare.middleware.error_handler import UnauthenticatedError
from liveshare.repositories.actor_repository import ActorRepository
from liveshare.schemas.actor import Actor
from liveshare.utils.clock import utc_now
from liveshare.utils.logger import log_info

bearer_scheme = HTTPBearer(auto_error=False)

# claim names accepted for the actor id, in priority order
_ID_CLAIMS = ("id", "_id", "userId", "sub")
_NAME_CLAIMS = ("fullName", "name")


def _first_claim(payload: Dict[str, Any], names) -> Optional[str]:
    for name in names:
        value = payload.get(name)
        if value:
            return str(value)
    return None


class ActorResolver:
    """Verify a signed bearer token and turn its claims into an Actor."""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret = secret or settings.JWT_SECRET
        self._algorithm = algorithm or settings.JWT_ALGORITHM

    def resolve(self, token: Optional[str]) -> Actor:
        if not token:
            raise UnauthenticatedError("No token provided")
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthenticatedError("Token expired")
        except jwt.InvalidTokenError as e:
            log_info(f"Rejected bearer token: {type(e).__name__}")
            raise UnauthenticatedError("Invalid token")

        actor_id = _first_claim(payload, _ID_CLAIMS)
        if not actor_id:
            raise UnauthenticatedError("Invalid token: no actor id")
        return Actor(
            id=actor_id,
            name=_first_claim(payload, _NAME_CLAIMS),
            email=payload.get("email"),
        )

    def issue(self, actor: Actor, **extra_claims: Any) -> str:
        """Sign a token for actor; used by tooling and tests."""
        claims: Dict[str, Any] = {"id": actor.id, "email": actor.email, "fullName": actor.name}
        claims.update(extra_claims)
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)


def get_actor_resolver() -> ActorResolver:
    return ActorResolver()


def get_actor_repository() -> ActorRepository:
    return ActorRepository()


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    resolver: ActorResolver = Depends(get_actor_resolver),
    actors: ActorRepository = Depends(get_actor_repository),
) -> Actor:
    """FastAPI dependency: resolve the caller and refresh the actor directory."""
    actor = resolver.resolve(credentials.credentials if credentials else None)
    await actors.upsert(actor.id, actor.name, actor.email, utc_now())
    return actor
