"""
core/validation.py -- Input sanitizer and validator for user-supplied text.

Two rules hold for every form:
  - Sanitization runs first and unconditionally. Post title/body are stripped
    of all markup even when the submission is about to be rejected.
  - Validation accumulates. Each validator collects every failed check and
    raises one ValidationError carrying the complete list.

Post text is stored as plain text. Escaping for display is the template
engine's job (Jinja2 autoescape), so strip_markup() does not re-escape.

Layer rule: core/ is the kernel. No imports from the other layers.
"""

from __future__ import annotations

import re
from html.parser import HTMLParser

from core.errors import ValidationError

USERNAME_MIN = 3
USERNAME_MAX = 20
PASSWORD_MIN = 8
PASSWORD_MAX = 18
TITLE_MAX = 50

_USERNAME_RE = re.compile(r"[A-Za-z0-9]+")

# Elements whose text content is dropped along with the tags.
_DISCARD_CONTENT_TAGS = frozenset({"script", "style", "textarea", "option", "noscript"})


class _TextExtractor(HTMLParser):
    """Collect character data, dropping every tag and attribute."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._chunks: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs) -> None:
        if tag in _DISCARD_CONTENT_TAGS:
            self._skip_depth += 1

    def handle_endtag(self, tag) -> None:
        if tag in _DISCARD_CONTENT_TAGS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data) -> None:
        if not self._skip_depth:
            self._chunks.append(data)

    def text(self) -> str:
        return "".join(self._chunks)


def _extract_text(value: str) -> str:
    parser = _TextExtractor()
    parser.feed(value)
    parser.close()
    return parser.text()


def strip_markup(value: str) -> str:
    """Return value with every HTML tag removed.

    Entity references are decoded after tags are dropped, so "&lt;b&gt;" would
    come out of one pass as a live "<b>" tag. Extraction repeats until the text
    stops changing; the result is a fixed point and holds no parseable markup.
    Each pass that changes the text shortens it, so the loop terminates.
    """
    while True:
        text = _extract_text(value)
        if text == value:
            return text
        value = text


def _as_text(value) -> str:
    # Form fields can arrive missing; treat anything non-string as empty.
    return value if isinstance(value, str) else ""


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


def validate_registration(username, password) -> tuple[str, str]:
    """Check registration input; return (trimmed username, password).

    Raises ValidationError listing every failed rule.
    """
    username = _as_text(username).strip()
    password = _as_text(password)
    errors: list[str] = []

    if not username:
        errors.append("you must provide a username")
    else:
        if len(username) < USERNAME_MIN:
            errors.append(f"username can not be less than {USERNAME_MIN} characters")
        if len(username) > USERNAME_MAX:
            errors.append(f"username can not exceed {USERNAME_MAX} characters")
        if not _USERNAME_RE.fullmatch(username):
            errors.append("username can only contain letters and numbers")

    if not password:
        errors.append("you must provide a password")
    else:
        if len(password) < PASSWORD_MIN:
            errors.append(f"password can not be less than {PASSWORD_MIN} characters")
        if len(password) > PASSWORD_MAX:
            errors.append(f"password can not exceed {PASSWORD_MAX} characters")

    if errors:
        raise ValidationError(errors)
    return username, password


def validate_login(username, password) -> tuple[str, str]:
    """Both login fields are required; no other shape rules apply."""
    username = _as_text(username)
    password = _as_text(password)
    if not username or not password:
        raise ValidationError(["you must provide a username and a password"])
    return username, password


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


def sanitize_post(title, body) -> tuple[str, str]:
    """Trim and strip markup from a post's title and body."""
    return strip_markup(_as_text(title).strip()).strip(), strip_markup(_as_text(body).strip()).strip()


def validate_post(title: str, body: str) -> None:
    """Validate already-sanitized post fields. Raises ValidationError."""
    errors: list[str] = []
    if not title:
        errors.append("post title is empty")
    if not body:
        errors.append("post body is empty")
    if title and len(title) > TITLE_MAX:
        errors.append(f"title must be between 1 and {TITLE_MAX} characters")
    if errors:
        raise ValidationError(errors)
