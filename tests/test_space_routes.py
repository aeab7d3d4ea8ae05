import io

from PIL import Image

from conftest import auth_headers, register


def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (640, 480), color="blue").save(buffer, format="PNG")
    return buffer.getvalue()


def test_space_join_and_remove_flow(client):
    owner = register(client, "owner@gmail.com", "owner")
    guest = register(client, "guest@gmail.com", "guest")

    response = client.post(
        "/api/spaces",
        json={"name": "Us", "description": "shared", "type": "couple"},
        headers=auth_headers(owner),
    )
    space = response.json()["data"]
    assert response.json()["code"] == 200
    assert space["type"] == "couple"

    response = client.post(f"/api/spaces/join/{space['invite_code']}", headers=auth_headers(guest))
    assert response.json()["data"]["member_count"] == 2

    response = client.get(f"/api/spaces/{space['id']}/members", headers=auth_headers(owner))
    roles = {m["username"]: m["role"] for m in response.json()["data"]}
    assert roles == {"owner": "owner", "guest": "member"}

    response = client.delete(
        f"/api/spaces/{space['id']}/members/{guest['user']['id']}", headers=auth_headers(owner)
    )
    assert response.json()["code"] == 200

    response = client.get(f"/api/spaces/{space['id']}", headers=auth_headers(guest))
    assert response.json()["code"] == 403


def test_refresh_invite_and_list(client):
    owner = register(client, "owner@gmail.com", "owner")
    space = client.post("/api/spaces", json={"name": "Mine"}, headers=auth_headers(owner)).json()["data"]

    response = client.post(f"/api/spaces/{space['id']}/invite", headers=auth_headers(owner))
    assert response.json()["data"]["invite_code"] != space["invite_code"]

    response = client.get("/api/spaces", headers=auth_headers(owner))
    assert [s["id"] for s in response.json()["data"]] == [space["id"]]


def test_event_lifecycle(client):
    owner = register(client, "owner@gmail.com", "owner")
    space = client.post("/api/spaces", json={"name": "Mine"}, headers=auth_headers(owner)).json()["data"]

    response = client.post(
        "/api/events",
        json={
            "space_id": space["id"],
            "event_date": "2026-04-01",
            "event_time": "09:30:00",
            "title": "Trip",
            "images": [{"image_url": "http://img/a.jpg", "thumbnail_url": "http://thumb/a.jpg"}],
        },
        headers=auth_headers(owner),
    )
    event = response.json()["data"]
    assert response.json()["code"] == 200
    assert event["images"][0]["sort_order"] == 0

    response = client.put(
        f"/api/events/{event['id']}", json={"title": "Road trip"}, headers=auth_headers(owner)
    )
    assert response.json()["data"]["title"] == "Road trip"

    response = client.get(
        f"/api/events/spaces/{space['id']}",
        params={"start_date": "2026-04-01", "end_date": "2026-04-30"},
        headers=auth_headers(owner),
    )
    assert [e["id"] for e in response.json()["data"]] == [event["id"]]

    image_id = event["images"][0]["id"]
    response = client.delete(f"/api/events/images/{image_id}", headers=auth_headers(owner))
    assert response.json()["code"] == 200

    response = client.delete(f"/api/events/{event['id']}", headers=auth_headers(owner))
    assert response.json()["code"] == 200

    response = client.get(f"/api/events/{event['id']}", headers=auth_headers(owner))
    assert response.json()["code"] == 404


def test_default_space(client):
    owner = register(client, "owner@gmail.com", "owner")
    space = client.post("/api/spaces", json={"name": "Mine"}, headers=auth_headers(owner)).json()["data"]

    response = client.put(
        "/api/users/default-space", json={"space_id": space["id"]}, headers=auth_headers(owner)
    )
    assert response.json()["data"]["default_space_id"] == space["id"]

    response = client.delete("/api/users/default-space", headers=auth_headers(owner))
    assert response.json()["data"]["default_space_id"] is None


def test_upload_images(client, object_storage):
    owner = register(client, "owner@gmail.com", "owner")

    response = client.post(
        "/api/upload/image",
        files={"image": ("photo.png", png_bytes(), "image/png")},
        headers=auth_headers(owner),
    )
    result = response.json()["data"]
    assert response.json()["code"] == 200
    assert (result["width"], result["height"]) == (640, 480)

    response = client.post(
        "/api/upload/images",
        files=[
            ("images", ("a.png", png_bytes(), "image/png")),
            ("images", ("b.png", png_bytes(), "image/png")),
        ],
        headers=auth_headers(owner),
    )
    assert len(response.json()["data"]) == 2
    assert len(object_storage.objects) == 6


def test_upload_requires_auth(client):
    response = client.post(
        "/api/upload/image", files={"image": ("photo.png", png_bytes(), "image/png")}
    )
    assert response.json()["code"] == 401


def test_event_list_limit_is_clamped(client):
    owner = register(client, "owner@gmail.com", "owner")
    space = client.post("/api/spaces", json={"name": "Mine"}, headers=auth_headers(owner)).json()["data"]

    response = client.get(
        f"/api/events/spaces/{space['id']}", params={"limit": 500}, headers=auth_headers(owner)
    )
    assert response.json()["code"] == 200
    assert response.json()["data"] == []
