PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_create_post_with_image(client, client_headers, storage):
    r = client.post(
        "/api/forum/posts",
        data={"title": "Mildiou sur tomates", "content": "Quel traitement conseillez-vous ?"},
        files={"image": ("leaf.png", PNG, "image/png")},
        headers=client_headers,
    )
    assert r.status_code == 201
    post = r.json()
    assert post["author_name"] == "Ferme Atlas"
    assert post["reply_count"] == 0
    assert post["image_url"].startswith("/storage/forum-images/forum-images/")
    assert post["image_url"].endswith(".png")

    key = post["image_url"].split("/storage/forum-images/", 1)[1]
    assert storage.exists("forum-images", key)


def test_post_without_image(client, client_headers):
    r = client.post(
        "/api/forum/posts",
        data={"title": "Question", "content": "Body"},
        headers=client_headers,
    )
    assert r.status_code == 201
    assert r.json()["image_url"] is None


def test_blank_post_rejected(client, client_headers):
    r = client.post("/api/forum/posts", data={"title": "  ", "content": "Body"}, headers=client_headers)
    assert r.status_code == 422
    assert r.json()["error"]["message"] == "Title and content are required"


def test_non_image_attachment_rejected(client, client_headers):
    r = client.post(
        "/api/forum/posts",
        data={"title": "Doc", "content": "See attached"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=client_headers,
    )
    assert r.status_code == 422


def test_reply_thread(client, client_headers, admin_headers):
    post_id = client.post(
        "/api/forum/posts", data={"title": "Dosage", "content": "NPK per hectare?"}, headers=client_headers
    ).json()["id"]

    r = client.post(f"/api/forum/posts/{post_id}/replies", data={"content": "300 kg/ha"}, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["author_name"] == "Admin"

    r = client.get(f"/api/forum/posts/{post_id}", headers=client_headers)
    post = r.json()
    assert post["reply_count"] == 1
    assert post["replies"][0]["content"] == "300 kg/ha"
    assert post["last_reply_at"] is not None


def test_posts_listed_newest_first(client, client_headers):
    for title in ("First", "Second"):
        client.post("/api/forum/posts", data={"title": title, "content": "x"}, headers=client_headers)

    r = client.get("/api/forum/posts", headers=client_headers)
    assert [p["title"] for p in r.json()] == ["Second", "First"]


def test_reply_to_missing_post(client, client_headers):
    r = client.post("/api/forum/posts/999/replies", data={"content": "hello"}, headers=client_headers)
    assert r.status_code == 404
    assert client.get("/api/forum/posts/999", headers=client_headers).status_code == 404


def test_forum_requires_auth(client):
    assert client.get("/api/forum/posts").status_code == 401
