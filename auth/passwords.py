"""
auth/passwords.py -- Password hashing and credential authentication.

Security design decisions:
  bcrypt with a fixed cost factor of 10 and a fresh random salt per hash.
       The hash string ("$2b$10$<salt><digest>") carries the algorithm, cost
       and salt, so verification needs nothing but the stored value.

  The _DUMMY_HASH constant enables timing equalization in authenticate_user()
       so response time does not reveal whether a username exists.

  Plaintext passwords are never logged or stored.

Layer rule: no imports from api/, web/, or posts/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from core.errors import AuthenticationFailure

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("inkwell.auth")

BCRYPT_ROUNDS = 10

USER_NOT_FOUND = "user not found"
INVALID_CREDENTIALS = "invalid credentials"


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Registration caps passwords at 18 characters, which keeps every input
    within bcrypt's 72-byte limit even for 4-byte UTF-8 characters.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed hashes and over-long inputs (which recent bcrypt releases
    reject with ValueError) count as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at import so the first login is not measurably slower.
_DUMMY_HASH: str = hash_password("inkwell_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str, unify_errors: bool = False) -> User:
    """Return the user whose credentials match, or raise AuthenticationFailure.

    bcrypt always runs, against _DUMMY_HASH when the username is unknown, so
    both failure branches cost the same.

    The failure message distinguishes "user not found" from "invalid
    credentials" unless unify_errors is set, in which case both report
    "invalid credentials".
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        logger.warning("Login failed: unknown username %r", username)
        raise AuthenticationFailure(INVALID_CREDENTIALS if unify_errors else USER_NOT_FOUND)
    if not verify_password(password, user.hashed_password):
        logger.warning("Login failed: bad password for user %s", user.id)
        raise AuthenticationFailure(INVALID_CREDENTIALS)
    return user
