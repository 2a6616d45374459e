"""
posts/access.py -- Ownership check for post mutation.

A post may only be changed or deleted by the user whose id is its owner_id.
load_owned_post() is called by every update and delete path before anything
is written; only a post it returns may be mutated.

Outcomes:
  - post missing              -> NotFound
  - post owned by someone else -> Unauthorized
  - caller owns the post       -> the Post
"""

from __future__ import annotations

import logging

from auth.models import User
from core.errors import NotFound, Unauthorized
from posts.models import Post
from posts.store import PostStore

logger = logging.getLogger("inkwell.posts")


def is_owner(post: Post, user: User) -> bool:
    return post.owner_id == user.id


def load_owned_post(store: PostStore, post_id: str, user: User) -> Post:
    """Return the post if user owns it; raise NotFound or Unauthorized otherwise."""
    post = store.get_post(post_id)
    if post is None:
        raise NotFound(f"post {post_id} does not exist")
    if not is_owner(post, user):
        logger.warning("User %s denied access to post %s owned by %s", user.id, post.id, post.owner_id)
        raise Unauthorized(f"user {user.id} does not own post {post.id}")
    return post
