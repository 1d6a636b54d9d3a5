"""
tests/test_posts.py
"""
from __future__ import annotations


def _create(client, headers, title="A title", body="Some body"):
    return client.post("/api/posts", json={"title": title, "body": body}, headers=headers)


# ───────────────────────── access control ─────────────────────────────
def test_create_needs_token(client):
    rv = client.post("/api/posts", json={"title": "Hi there", "body": "x"})
    assert rv.status_code == 401


def test_create_needs_admin(client, user):
    rv = _create(client, user["headers"])
    assert rv.status_code == 403
    assert rv.get_json() == {"error": "Admin access required"}


def test_update_and_delete_need_admin(client, user, post):
    pid = post["_id"]
    assert client.put(f"/api/posts/{pid}", json={"title": "Hijacked"}, headers=user["headers"]).status_code == 403
    assert client.delete(f"/api/posts/{pid}", headers=user["headers"]).status_code == 403


# ───────────────────────── CRUD round-trip ────────────────────────────
def test_create_read_update_delete(client, admin):
    rv = _create(client, admin["headers"], title="Hello", body="World")
    assert rv.status_code == 201
    created = rv.get_json()
    assert created["author"] == admin["id"]      # bare id right after a write
    assert created["likes"] == []
    assert created["comments"] == []
    pid = created["_id"]

    got = client.get(f"/api/posts/{pid}").get_json()
    assert got["title"] == "Hello"
    assert got["author"]["name"] == "Admin"

    rv = client.put(f"/api/posts/{pid}", json={"body": "Updated body"}, headers=admin["headers"])
    assert rv.status_code == 200
    updated = rv.get_json()
    assert updated["title"] == "Hello"          # untouched field kept
    assert updated["body"] == "Updated body"
    assert updated["updatedAt"] >= created["updatedAt"]

    rv = client.delete(f"/api/posts/{pid}", headers=admin["headers"])
    assert rv.get_json() == {"message": "Post deleted"}
    assert client.get(f"/api/posts/{pid}").status_code == 404


def test_create_validation(client, admin):
    rv = _create(client, admin["headers"], title="x", body="   ")
    assert rv.status_code == 400
    assert {e["path"] for e in rv.get_json()["errors"]} == {"title", "body"}


def test_title_length_cap(client, admin):
    rv = _create(client, admin["headers"], title="t" * 301)
    assert rv.status_code == 400


def test_update_validates_supplied_fields(client, admin, post):
    rv = client.put(f"/api/posts/{post['_id']}", json={"title": ""}, headers=admin["headers"])
    assert rv.status_code == 400


def test_update_missing_post(client, admin):
    rv = client.put("/api/posts/424242", json={"title": "Anything"}, headers=admin["headers"])
    assert rv.status_code == 404
    assert rv.get_json() == {"error": "Post not found"}


def test_delete_missing_post(client, admin):
    assert client.delete("/api/posts/424242", headers=admin["headers"]).status_code == 404


def test_script_tags_are_stripped(client, admin):
    rv = _create(client, admin["headers"], body="<b>Hi</b><script>alert(1)</script>")
    assert rv.get_json()["body"] == "<b>Hi</b>"


def test_delete_cascades_to_comments_and_likes(client, admin, user, post):
    pid = post["_id"]
    client.post(f"/api/posts/{pid}/like", headers=user["headers"])
    client.post(f"/api/posts/{pid}/comments", json={"text": "See you at noon"}, headers=user["headers"])
    client.delete(f"/api/posts/{pid}", headers=admin["headers"])

    from app import app
    from database import get_db
    with app.app_context():
        db = get_db()
        assert db.execute("SELECT COUNT(*) FROM comments").fetchone()[0] == 0
        assert db.execute("SELECT COUNT(*) FROM post_likes").fetchone()[0] == 0


# ───────────────────────── listing ────────────────────────────────────
def test_list_is_newest_first_and_paginated(client, admin):
    for i in range(3):
        _create(client, admin["headers"], title=f"Post {i}")

    data = client.get("/api/posts?limit=2").get_json()
    assert [p["title"] for p in data["posts"]] == ["Post 2", "Post 1"]
    assert data["meta"] == {"page": 1, "limit": 2, "total": 3}

    data = client.get("/api/posts?limit=2&page=2").get_json()
    assert [p["title"] for p in data["posts"]] == ["Post 0"]


def test_list_defaults_and_clamping(client):
    assert client.get("/api/posts").get_json()["meta"] == {"page": 1, "limit": 10, "total": 0}
    assert client.get("/api/posts?limit=500").get_json()["meta"]["limit"] == 100
    assert client.get("/api/posts?limit=abc&page=zzz").get_json()["meta"] == {"page": 1, "limit": 10, "total": 0}
    assert client.get("/api/posts?limit=0&page=0").get_json()["meta"] == {"page": 1, "limit": 10, "total": 0}
    assert client.get("/api/posts?limit=-5&page=-2").get_json()["meta"] == {"page": 1, "limit": 1, "total": 0}


def test_list_leaves_comment_authors_unpopulated(client, user, post):
    client.post(f"/api/posts/{post['_id']}/comments", json={"text": "See you at noon"}, headers=user["headers"])
    listed = client.get("/api/posts").get_json()["posts"][0]
    assert listed["comments"][0]["author"] == user["id"]

    single = client.get(f"/api/posts/{post['_id']}").get_json()
    assert single["comments"][0]["author"]["name"] == "Reader"


# ───────────────────────── likes ──────────────────────────────────────
def test_like_toggle_is_an_involution(client, user, post):
    url = f"/api/posts/{post['_id']}/like"

    rv = client.post(url, headers=user["headers"])
    assert rv.get_json() == {"message": "Post liked", "likesCount": 1}
    assert client.get(f"/api/posts/{post['_id']}").get_json()["likes"] == [user["id"]]

    rv = client.post(url, headers=user["headers"])
    assert rv.get_json() == {"message": "Post unliked", "likesCount": 0}
    assert client.get(f"/api/posts/{post['_id']}").get_json()["likes"] == []


def test_likes_from_different_users_add_up(client, make_user, post):
    url = f"/api/posts/{post['_id']}/like"
    for _ in range(3):
        rv = client.post(url, headers=make_user()["headers"])
    assert rv.get_json()["likesCount"] == 3


def test_like_needs_auth_and_existing_post(client, user):
    assert client.post("/api/posts/1/like").status_code == 401
    assert client.post("/api/posts/424242/like", headers=user["headers"]).status_code == 404


# ───────────────────────── malformed input ────────────────────────────
def test_create_with_non_object_json(client, admin):
    for body in ("a title and body", ["title", "body"], None):
        rv = client.post("/api/posts", json=body, headers=admin["headers"])
        assert rv.status_code == 400, body
        assert {e["path"] for e in rv.get_json()["errors"]} == {"title", "body"}


def test_update_with_non_object_json_changes_nothing(client, admin, post):
    rv = client.put(f"/api/posts/{post['_id']}", json="title", headers=admin["headers"])
    assert rv.status_code == 200
    assert rv.get_json()["title"] == post["title"]
    assert rv.get_json()["author"] == admin["id"]


def test_huge_page_number_gives_an_empty_page(client, post):
    rv = client.get("/api/posts?page=99999999999999999999")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["posts"] == []
    assert data["meta"]["total"] == 1
