"""
web/routes.py -- Jinja2 template routes for the Inkwell web UI.

These routes serve server-rendered HTML. Every handler receives the request's
Identity through Depends(current_identity); protected handlers pass it to
require_identity() first, which soft-redirects anonymous visitors to "/".

Post mutation goes through posts.access.load_owned_post(), which raises
NotFound or Unauthorized before anything is written. Both are rendered as
pages rather than redirects:
  NotFound     -> not_found.html, HTTP 404 (view, edit form, update, delete alike)
  Unauthorized -> unauthorized.html, HTTP 200

HTML forms can only GET or POST. PATCH and DELETE arrive as POST with a
?_method= override, which api/main.py rewrites before routing.

Routes:
  GET    /                    -- landing page (anonymous) or dashboard (signed in)
  GET    /login               -- login form
  POST   /register            -- create account, set session cookie, redirect /
  POST   /login               -- check credentials, set session cookie, redirect /
  GET    /logout              -- clear session cookie, redirect /
  GET    /createPost          -- new post form (auth required)
  POST   /createPost          -- create post, redirect /post/{id} (auth required)
  GET    /post/{post_id}      -- single post (auth required)
  GET    /updatePost/{post_id} -- edit form (auth + ownership)
  PATCH  /updatePost/{post_id} -- apply edit, redirect /post/{id} (auth + ownership)
  DELETE /deletePost/{post_id} -- delete, redirect / (auth + ownership)
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import current_identity, require_identity
from auth.models import Authenticated, Identity, User
from auth.passwords import authenticate_user, hash_password
from auth.store import UserStore
from auth.tokens import clear_session_cookie, set_session_cookie
from core.errors import AuthenticationFailure, DuplicateUsername, NotFound, Unauthorized, ValidationError
from core.validation import sanitize_post, validate_login, validate_post, validate_registration
from posts.access import is_owner, load_owned_post
from posts.models import Post
from posts.store import PostStore

logger = logging.getLogger("inkwell.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

USER_EXISTS = "user already exists"
NO_CHANGES = "no changes made"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _render(request: Request, name: str, identity: Identity, status_code: int = 200, **context) -> HTMLResponse:
    """Render a template with the current identity available to the layout."""
    context.setdefault("errors", [])
    context["identity"] = identity
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def _not_found(request: Request, identity: Identity) -> HTMLResponse:
    return _render(request, "not_found.html", identity, status_code=404)


def _unauthorized(request: Request, identity: Identity) -> HTMLResponse:
    return _render(request, "unauthorized.html", identity)


def _start_session(request: Request, user: User) -> RedirectResponse:
    """Issue a session token for user and redirect home with the cookie set."""
    settings = request.app.state.settings
    token = request.app.state.token_codec.issue(user.id)
    resp = RedirectResponse("/", status_code=302)
    set_session_cookie(
        resp,
        token,
        max_age=settings.token_expire_seconds,
        secure=settings.secure_cookies,
        cookie_name=settings.session_cookie_name,
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# GET / -- landing page or dashboard
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request, identity: Identity = Depends(current_identity)) -> HTMLResponse:
    if isinstance(identity, Authenticated):
        post_store: PostStore = request.app.state.post_store
        posts = post_store.list_by_owner(identity.user.id)
        return _render(request, "dashboard.html", identity, posts=posts, username=identity.user.username)
    return _render(request, "homepage.html", identity)


# ---------------------------------------------------------------------------
# Registration, login, logout
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request, identity: Identity = Depends(current_identity)) -> HTMLResponse:
    """Render the login form. Signed-in users go straight home."""
    if isinstance(identity, Authenticated):
        return RedirectResponse("/", status_code=302)
    return _render(request, "login.html", identity)


@router.post("/register", response_class=HTMLResponse)
def register(
    request: Request,
    identity: Identity = Depends(current_identity),
    username: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Create an account and sign it in. Re-renders the landing page on any error."""
    try:
        username, password = validate_registration(username, password)
    except ValidationError as exc:
        return _render(request, "homepage.html", identity, errors=exc.messages)

    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_username(username) is not None:
        return _render(request, "homepage.html", identity, errors=[USER_EXISTS])
    try:
        user = user_store.create_user(username, hash_password(password))
    except DuplicateUsername:
        # Lost the race to a concurrent registration; the UNIQUE constraint caught it.
        logger.warning("Duplicate registration for %r rejected by store", username)
        return _render(request, "homepage.html", identity, errors=[USER_EXISTS])

    logger.info("Registered user %s (%s)", user.id, user.username)
    return _start_session(request, user)


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    identity: Identity = Depends(current_identity),
    username: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Handle username/password login form submission."""
    try:
        username, password = validate_login(username, password)
    except ValidationError as exc:
        return _render(request, "login.html", identity, errors=exc.messages)

    settings = request.app.state.settings
    try:
        user = authenticate_user(
            request.app.state.user_store,
            username,
            password,
            unify_errors=settings.unify_login_errors,
        )
    except AuthenticationFailure as exc:
        return _render(request, "login.html", identity, errors=[exc.message])
    return _start_session(request, user)


@router.get("/logout")
def logout(request: Request) -> RedirectResponse:
    """Clear the session cookie and go home."""
    settings = request.app.state.settings
    resp = RedirectResponse("/", status_code=302)
    clear_session_cookie(resp, secure=settings.secure_cookies, cookie_name=settings.session_cookie_name)
    return resp


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.get("/createPost", response_class=HTMLResponse)
def create_post_form(request: Request, identity: Identity = Depends(current_identity)) -> HTMLResponse:
    if redirect := require_identity(identity):
        return redirect
    return _render(request, "create_post.html", identity, form_data={"title": "", "body": ""})


@router.post("/createPost", response_class=HTMLResponse)
def create_post(
    request: Request,
    identity: Identity = Depends(current_identity),
    title: Optional[str] = Form(default=None),
    body: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Handle new post form POST. Redirects to the new post on success."""
    if redirect := require_identity(identity):
        return redirect
    title, body = sanitize_post(title, body)
    try:
        validate_post(title, body)
    except ValidationError as exc:
        return _render(
            request,
            "create_post.html",
            identity,
            errors=exc.messages,
            form_data={"title": title, "body": body},
        )

    post_store: PostStore = request.app.state.post_store
    post = post_store.create_post(Post(title=title, body=body, owner_id=identity.user.id))
    return RedirectResponse(f"/post/{post.id}", status_code=303)


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


@router.get("/post/{post_id}", response_class=HTMLResponse)
def post_detail(request: Request, post_id: str, identity: Identity = Depends(current_identity)) -> HTMLResponse:
    if redirect := require_identity(identity):
        return redirect
    post_store: PostStore = request.app.state.post_store
    post = post_store.get_post(post_id)
    if post is None:
        return _not_found(request, identity)
    author = request.app.state.user_store.get_by_id(post.owner_id)
    return _render(
        request,
        "single_post.html",
        identity,
        post=post,
        author_name=author.username if author else "unknown",
        is_author=is_owner(post, identity.user),
    )


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


@router.get("/updatePost/{post_id}", response_class=HTMLResponse)
def update_post_form(request: Request, post_id: str, identity: Identity = Depends(current_identity)) -> HTMLResponse:
    """Render the edit form, pre-populated with the stored values."""
    if redirect := require_identity(identity):
        return redirect
    try:
        post = load_owned_post(request.app.state.post_store, post_id, identity.user)
    except NotFound:
        return _not_found(request, identity)
    except Unauthorized:
        return _unauthorized(request, identity)
    return _render(request, "update_post.html", identity, post=post, form_data={"title": post.title, "body": post.body})


@router.patch("/updatePost/{post_id}", response_class=HTMLResponse)
def update_post(
    request: Request,
    post_id: str,
    identity: Identity = Depends(current_identity),
    title: Optional[str] = Form(default=None),
    body: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Apply an edit. Identical title and body count as a validation error."""
    if redirect := require_identity(identity):
        return redirect
    post_store: PostStore = request.app.state.post_store
    try:
        post = load_owned_post(post_store, post_id, identity.user)
    except NotFound:
        return _not_found(request, identity)
    except Unauthorized:
        return _unauthorized(request, identity)

    title, body = sanitize_post(title, body)
    try:
        validate_post(title, body)
        if title == post.title and body == post.body:
            raise ValidationError([NO_CHANGES])
    except ValidationError as exc:
        return _render(
            request,
            "update_post.html",
            identity,
            post=post,
            errors=exc.messages,
            form_data={"title": title, "body": body},
        )

    post_store.update_post(post.id, title, body)
    return RedirectResponse(f"/post/{post.id}", status_code=303)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


@router.delete("/deletePost/{post_id}", response_class=HTMLResponse)
def delete_post(request: Request, post_id: str, identity: Identity = Depends(current_identity)) -> HTMLResponse:
    if redirect := require_identity(identity):
        return redirect
    post_store: PostStore = request.app.state.post_store
    try:
        post = load_owned_post(post_store, post_id, identity.user)
    except NotFound:
        return _not_found(request, identity)
    except Unauthorized:
        return _unauthorized(request, identity)
    post_store.delete_post(post.id)
    logger.info("Post %s deleted by user %s", post.id, identity.user.id)
    return RedirectResponse("/", status_code=303)
