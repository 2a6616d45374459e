"""
auth/dependencies.py -- Identity resolution and the route-level guard.

resolve_identity() is the only place a session token is decoded. It is a pure
function of (token, codec, store) and always returns an Identity:
  - Authenticated(user) when the token verifies and the user still exists
  - ANONYMOUS for everything else (no cookie, garbage, bad signature, expired,
    deleted user)
It never raises for a bad token. "Not logged in" and "bad token" look the
same from outside.

current_identity() is the FastAPI dependency that feeds resolve_identity()
from the request's session cookie. Handlers take the result as a parameter:
    def route(request: Request, identity: Identity = Depends(current_identity)): ...

require_identity() is the guard for protected pages. Anonymous callers get a
soft redirect to the landing page, not a 401/403:
    if redirect := require_identity(identity):
        return redirect

Layer rule: no imports from web/ or posts/.
  auth/dependencies.py may import from fastapi (Request, RedirectResponse)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

from auth.models import ANONYMOUS, Authenticated, Identity
from auth.tokens import SESSION_COOKIE

if TYPE_CHECKING:
    from auth.store import UserStore
    from auth.tokens import TokenCodec

LANDING_PAGE = "/"


def resolve_identity(token: Optional[str], codec: TokenCodec, store: UserStore) -> Identity:
    """Map an inbound session token to an Identity. Never raises on bad tokens."""
    user_id = codec.verify(token)
    if user_id is None:
        return ANONYMOUS
    user = store.get_by_id(user_id)
    if user is None:
        return ANONYMOUS
    return Authenticated(user)


def current_identity(request: Request) -> Identity:
    """FastAPI dependency: resolve the identity carried by this request's cookie."""
    state = request.app.state
    cookie_name = getattr(getattr(state, "settings", None), "session_cookie_name", SESSION_COOKIE)
    return resolve_identity(request.cookies.get(cookie_name), state.token_codec, state.user_store)


def require_identity(identity: Identity) -> Optional[RedirectResponse]:
    """Return a redirect to the landing page for anonymous callers, None otherwise."""
    if isinstance(identity, Authenticated):
        return None
    return RedirectResponse(LANDING_PAGE, status_code=302)
