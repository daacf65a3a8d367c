"""Caller identity resolution.

Authentication happens upstream (an auth gateway or reverse proxy); it
forwards the verified caller as ``X-User-Id`` and ``X-User-Role`` headers.
Identity is never read from request bodies.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict

ADMIN_ROLE = "admin"


class Identity(BaseModel):
    """The authenticated caller."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_identity(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Identity:
    """Resolve the caller from upstream headers; 401 when absent."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    role = (x_user_role or "user").strip().lower() or "user"
    return Identity(user_id=x_user_id.strip(), role=role)


IdentityDep = Annotated[Identity, Depends(get_identity)]


def require_admin(identity: IdentityDep) -> Identity:
    """Admin-only guard; 403 for any other role."""
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return identity


AdminDep = Annotated[Identity, Depends(require_admin)]
