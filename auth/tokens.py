"""
auth/tokens.py -- Session token codec and session cookie helpers.

Security design decisions:
  Stateless sessions: the server keeps no session table. A token is valid
       when its signature checks out and it has not expired -- nothing else.
       There is no refresh-in-place and no revocation list.

  TokenCodec is the seam call sites depend on. JWTTokenCodec (python-jose,
       HS256) is the implementation wired in at startup; a different signing
       scheme only needs another class with the same two methods.

  The signing secret is passed to the codec constructor. It comes from
       Settings, loaded once in the application lifespan.

  verify() returns None on any failure -- missing, malformed, tampered,
       wrong key, expired. It never raises into the caller's control flow.

Layer rule: no imports from api/, web/, or posts/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from jose import JWTError, jwt

logger = logging.getLogger("inkwell.auth")

DEFAULT_EXPIRE_SECONDS = 24 * 60 * 60
SESSION_COOKIE = "sessionToken"


class TokenCodec(Protocol):
    """Issue and verify session tokens that embed a user id."""

    def issue(self, user_id: str) -> str: ...

    def verify(self, token: Optional[str]) -> Optional[str]: ...


class JWTTokenCodec:
    """HS256 JWT implementation of TokenCodec.

    Claims: sub (user id), iat, exp. Expiry is absolute: issue time plus
    expire_seconds.
    """

    algorithm = "HS256"

    def __init__(self, secret_key: str, expire_seconds: int = DEFAULT_EXPIRE_SECONDS) -> None:
        if not secret_key:
            raise ValueError("JWTTokenCodec requires a non-empty secret key")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Optional[str]:
        """Return the embedded user id, or None if the token is not valid."""
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except (JWTError, ValueError, TypeError) as exc:
            logger.debug("Rejected session token: %s", type(exc).__name__)
            return None
        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id or "exp" not in payload:
            return None
        return user_id


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(
    response,
    token: str,
    max_age: int = DEFAULT_EXPIRE_SECONDS,
    secure: bool = True,
    cookie_name: str = SESSION_COOKIE,
) -> None:
    """Write the session token as a cookie on the response.

    httponly=True: page scripts cannot read the cookie.
    secure: only sent over HTTPS.
    samesite="strict": never sent on cross-site requests.
    max_age: matches the token lifetime so both expire together.
    """
    response.set_cookie(
        cookie_name,
        value=token,
        httponly=True,
        secure=secure,
        samesite="strict",
        max_age=max_age,
    )


def clear_session_cookie(response, secure: bool = True, cookie_name: str = SESSION_COOKIE) -> None:
    response.delete_cookie(cookie_name, httponly=True, secure=secure, samesite="strict")
