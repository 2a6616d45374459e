"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these classes own the domain shape.

Identity is a tagged variant: every request resolves to exactly one of
Anonymous or Authenticated. Handlers receive it as a parameter and decide
what anonymity means for them.

Layer rule: no imports from api/, web/, or posts/.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass
class User:
    """A registered account.

    id is a UUID4 string assigned by the store at creation and never changes.
    username is unique (case-sensitive) and immutable.
    hashed_password is a bcrypt hash string -- never the plaintext.
    """

    id: str
    username: str
    hashed_password: str
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class Anonymous:
    """No valid session on this request."""

    is_authenticated = False


@dataclass(frozen=True)
class Authenticated:
    """A verified session belonging to an existing user."""

    user: User

    is_authenticated = True


Identity = Union[Anonymous, Authenticated]

ANONYMOUS = Anonymous()
