"""
tests/test_web_posts.py -- Post CRUD behind the guard and the ownership check.

Coverage:
  - end-to-end: register alice, create a post, is_author true for alice and
    false for bob
  - bob's update/delete of alice's post renders the deny page (200) and
    changes nothing; alice's own mutations succeed
  - missing posts render the not-found page (404) on every route
  - identical title/body -> "no changes made", store untouched
  - markup is stripped before storage
  - POST ?_method=PATCH|DELETE is dispatched as the real method
"""

from __future__ import annotations

import pytest

MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
def alice(signup, session_cookie) -> dict:
    return session_cookie(signup("alice", "password1"))


@pytest.fixture
def bob(signup, session_cookie) -> dict:
    return session_cookie(signup("bob", "password2"))


@pytest.fixture
def alice_post_id(web_client, alice) -> str:
    resp = web_client.post("/createPost", data={"title": "Hi", "body": "world"}, headers=alice)
    assert resp.status_code == 303
    return resp.headers["location"].rsplit("/", 1)[-1]


class TestEndToEnd:
    def test_register_create_view(self, web_client, alice, bob, post_store) -> None:
        resp = web_client.post("/createPost", data={"title": "Hi", "body": "world"}, headers=alice)
        assert resp.status_code == 303
        location = resp.headers["location"]
        assert location.startswith("/post/")
        post_id = location.rsplit("/", 1)[-1]

        stored = post_store.get_post(post_id)
        assert (stored.title, stored.body) == ("Hi", "world")

        as_alice = web_client.get(location, headers=alice)
        assert as_alice.status_code == 200
        assert as_alice.context["is_author"] is True
        assert as_alice.context["author_name"] == "alice"
        assert "world" in as_alice.text

        as_bob = web_client.get(location, headers=bob)
        assert as_bob.status_code == 200
        assert as_bob.context["is_author"] is False

    def test_dashboard_lists_only_own_posts(self, web_client, alice, bob, alice_post_id) -> None:
        web_client.post("/createPost", data={"title": "Bob's", "body": "text"}, headers=bob)
        resp = web_client.get("/", headers=alice)
        assert resp.template.name == "dashboard.html"
        assert [p.id for p in resp.context["posts"]] == [alice_post_id]
        assert resp.context["username"] == "alice"

    def test_create_form_renders(self, web_client, alice) -> None:
        resp = web_client.get("/createPost", headers=alice)
        assert resp.status_code == 200
        assert resp.template.name == "create_post.html"


class TestCreateValidation:
    def test_markup_is_stripped(self, web_client, alice, post_store) -> None:
        resp = web_client.post(
            "/createPost",
            data={"title": "<b>Hi</b>", "body": "<script>alert(1)</script><p>world</p>"},
            headers=alice,
        )
        post = post_store.get_post(resp.headers["location"].rsplit("/", 1)[-1])
        assert (post.title, post.body) == ("Hi", "world")

    def test_empty_fields_accumulate(self, web_client, alice, post_store) -> None:
        resp = web_client.post("/createPost", data={"title": " ", "body": "<p></p>"}, headers=alice)
        assert resp.status_code == 200
        assert resp.context["errors"] == ["post title is empty", "post body is empty"]

    def test_long_title_rejected(self, web_client, alice) -> None:
        resp = web_client.post("/createPost", data={"title": "t" * 51, "body": "b"}, headers=alice)
        assert resp.context["errors"] == ["title must be between 1 and 50 characters"]


class TestOwnership:
    def test_other_user_cannot_open_edit_form(self, web_client, bob, alice_post_id) -> None:
        resp = web_client.get(f"/updatePost/{alice_post_id}", headers=bob)
        assert resp.status_code == 200
        assert resp.template.name == "unauthorized.html"

    def test_other_user_cannot_update(self, web_client, bob, alice_post_id, post_store) -> None:
        resp = web_client.patch(f"/updatePost/{alice_post_id}", data={"title": "pwned", "body": "x"}, headers=bob)
        assert resp.status_code == 200
        assert resp.template.name == "unauthorized.html"
        assert post_store.get_post(alice_post_id).title == "Hi"

    def test_other_user_cannot_delete(self, web_client, bob, alice_post_id, post_store) -> None:
        resp = web_client.delete(f"/deletePost/{alice_post_id}", headers=bob)
        assert resp.status_code == 200
        assert resp.template.name == "unauthorized.html"
        assert post_store.get_post(alice_post_id) is not None

    def test_owner_edit_form(self, web_client, alice, alice_post_id) -> None:
        resp = web_client.get(f"/updatePost/{alice_post_id}", headers=alice)
        assert resp.status_code == 200
        assert resp.template.name == "update_post.html"
        assert resp.context["form_data"] == {"title": "Hi", "body": "world"}

    def test_owner_update(self, web_client, alice, alice_post_id, post_store) -> None:
        resp = web_client.patch(
            f"/updatePost/{alice_post_id}", data={"title": "Hello", "body": "everyone"}, headers=alice
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == f"/post/{alice_post_id}"
        post = post_store.get_post(alice_post_id)
        assert (post.title, post.body) == ("Hello", "everyone")

    def test_owner_delete(self, web_client, alice, alice_post_id, post_store) -> None:
        resp = web_client.delete(f"/deletePost/{alice_post_id}", headers=alice)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/"
        assert post_store.get_post(alice_post_id) is None


class TestUpdateRules:
    def test_identical_submission_is_no_change(self, web_client, alice, alice_post_id, post_store) -> None:
        before = post_store.get_post(alice_post_id)
        resp = web_client.patch(f"/updatePost/{alice_post_id}", data={"title": "Hi", "body": "world"}, headers=alice)
        assert resp.status_code == 200
        assert resp.context["errors"] == ["no changes made"]
        assert post_store.get_post(alice_post_id) == before

    def test_identical_after_sanitizing_is_no_change(self, web_client, alice, alice_post_id) -> None:
        resp = web_client.patch(
            f"/updatePost/{alice_post_id}", data={"title": "<i>Hi</i>", "body": " world "}, headers=alice
        )
        assert resp.context["errors"] == ["no changes made"]

    @pytest.mark.parametrize(
        "body",
        ["use &lt;b&gt; for bold", "&lt;script&gt;alert(1)&lt;/script&gt;tail", "1 &lt; 2"],
    )
    def test_resubmitting_edit_form_is_no_change(self, web_client, alice, post_store, body: str) -> None:
        created = web_client.post("/createPost", data={"title": "Escaped", "body": body}, headers=alice)
        post_id = created.headers["location"].rsplit("/", 1)[-1]
        stored = post_store.get_post(post_id)
        assert "<script" not in stored.body
        assert "<b>" not in stored.body

        form_data = web_client.get(f"/updatePost/{post_id}", headers=alice).context["form_data"]
        resp = web_client.patch(f"/updatePost/{post_id}", data=form_data, headers=alice)
        assert resp.status_code == 200
        assert resp.context["errors"] == ["no changes made"]
        assert post_store.get_post(post_id) == stored

    def test_invalid_update_rerenders_form(self, web_client, alice, alice_post_id, post_store) -> None:
        resp = web_client.patch(f"/updatePost/{alice_post_id}", data={"title": "", "body": "new"}, headers=alice)
        assert resp.template.name == "update_post.html"
        assert resp.context["errors"] == ["post title is empty"]
        assert post_store.get_post(alice_post_id).body == "world"


class TestNotFound:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", f"/post/{MISSING_ID}"),
            ("GET", f"/updatePost/{MISSING_ID}"),
            ("PATCH", f"/updatePost/{MISSING_ID}"),
            ("DELETE", f"/deletePost/{MISSING_ID}"),
        ],
    )
    def test_missing_post_renders_not_found(self, web_client, alice, method: str, path: str) -> None:
        resp = web_client.request(method, path, headers=alice)
        assert resp.status_code == 404
        assert resp.template.name == "not_found.html"

    def test_deleted_post_is_gone(self, web_client, alice, alice_post_id) -> None:
        web_client.delete(f"/deletePost/{alice_post_id}", headers=alice)
        resp = web_client.get(f"/post/{alice_post_id}", headers=alice)
        assert resp.status_code == 404


class TestMethodOverride:
    def test_post_with_delete_override(self, web_client, alice, alice_post_id, post_store) -> None:
        resp = web_client.post(f"/deletePost/{alice_post_id}?_method=DELETE", headers=alice)
        assert resp.status_code == 303
        assert post_store.get_post(alice_post_id) is None

    def test_post_with_patch_override(self, web_client, alice, alice_post_id, post_store) -> None:
        resp = web_client.post(
            f"/updatePost/{alice_post_id}?_method=patch", data={"title": "Edited", "body": "world"}, headers=alice
        )
        assert resp.status_code == 303
        assert post_store.get_post(alice_post_id).title == "Edited"

    def test_unknown_override_is_ignored(self, web_client, alice, alice_post_id) -> None:
        resp = web_client.post(f"/deletePost/{alice_post_id}?_method=TRACE", headers=alice)
        assert resp.status_code == 405
