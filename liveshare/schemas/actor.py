from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Actor(BaseModel):
    """Authenticated identity handed to the services by the auth collaborator."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
