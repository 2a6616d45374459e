"""
api/routes/v1/auth.py -- Identity endpoint for JSON clients.

Routes:
  GET /api/v1/auth/me  -- the identity resolved from the session cookie (public)

Auth policy: public. Anonymous is a normal answer here, not an error -- the
same resolver the web UI uses decides, so a bad or expired token is reported
exactly like a missing one.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MeResponse
from auth.dependencies import current_identity
from auth.models import Authenticated, Identity

router = APIRouter()


@router.get("/auth/me", response_model=MeResponse)
async def me(identity: Identity = Depends(current_identity)) -> MeResponse:
    """Return identity information for the current session, if any."""
    if isinstance(identity, Authenticated):
        return MeResponse(authenticated=True, user_id=identity.user.id, username=identity.user.username)
    return MeResponse(authenticated=False)
