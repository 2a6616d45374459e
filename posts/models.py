"""
posts/models.py -- Domain dataclass for user posts.

Pure data container with zero logic. Ownership rules live in posts/access.py,
persistence in posts/store.py.
"""

from dataclasses import dataclass


@dataclass
class Post:
    """A post written by one user.

    title and body are sanitized plain text; markup is stripped before the
    post reaches the store.

    owner_id is the creating user's id. It is set once at creation and is the
    sole basis for the ownership check -- the store never updates it.

    id and created_date are filled in by PostStore.create_post().
    """

    title: str
    body: str
    owner_id: str
    id: str = ""
    created_date: str = ""  # ISO 8601 UTC
