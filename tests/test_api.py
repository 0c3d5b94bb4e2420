"""HTTP tests through the FastAPI app with a throwaway SQLite database."""

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, auth_headers

API = "/api/v1"


def _create_channel(client, name="general", user_id=OWNER):
    response = client.post(
        f"{API}/channels",
        json={"workspace_id": "w1", "name": name},
        headers=auth_headers(user_id),
    )
    assert response.status_code == 201
    return response.json()


def test_health_endpoints(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "channel-service"}

    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["database"] == "connected"
    assert data["kafka"] == "disabled"


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "channel"


def test_requests_require_a_valid_token(client):
    response = client.get(f"{API}/channels", params={"workspace_id": "w1"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing Authorization header"

    response = client.get(
        f"{API}/channels", params={"workspace_id": "w1"}, headers={"Authorization": "Bearer nope"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"

    response = client.get(
        f"{API}/channels", params={"workspace_id": "w1"}, headers={"Authorization": "Token abc"}
    )
    assert response.status_code == 401


def test_create_and_update_channel(client):
    channel = _create_channel(client)
    assert channel["type"] == "public"
    assert channel["created_by"] == OWNER

    response = client.get(f"{API}/channels/{channel['id']}", headers=auth_headers(OWNER))
    assert response.status_code == 200
    detail = response.json()
    assert detail["my_role"] == "owner"
    assert detail["member_count"] == 1

    response = client.put(
        f"{API}/channels/{channel['id']}",
        json={"topic": "Q3 planning"},
        headers=auth_headers(OWNER),
    )
    assert response.status_code == 200
    assert response.json()["topic"] == "Q3 planning"

    response = client.get(f"{API}/channels/{channel['id']}/topic-history", headers=auth_headers(OWNER))
    assert [entry["new_topic"] for entry in response.json()] == ["Q3 planning"]


def test_domain_errors_map_to_status_and_body(client):
    channel = _create_channel(client)

    response = client.post(
        f"{API}/channels", json={"workspace_id": "w1", "name": "general"}, headers=auth_headers(OWNER)
    )
    assert response.status_code == 409
    assert response.json()["code"] == "channel_name_taken"

    response = client.get(f"{API}/channels/missing", headers=auth_headers(OWNER))
    assert response.status_code == 404
    assert response.json() == {
        "detail": "Channel not found",
        "code": "channel_not_found",
        "entity_id": "missing",
    }

    response = client.put(
        f"{API}/channels/{channel['id']}", json={"topic": "x"}, headers=auth_headers(OUTSIDER)
    )
    assert response.status_code == 403

    response = client.post(
        f"{API}/channels", json={"workspace_id": "w1", "name": ""}, headers=auth_headers(OWNER)
    )
    assert response.status_code == 422


def test_member_management(client):
    channel = _create_channel(client)
    members_url = f"{API}/channels/{channel['id']}/members"

    response = client.post(members_url, json={"user_id": ADMIN, "role": "admin"}, headers=auth_headers(OWNER))
    assert response.status_code == 201
    assert response.json()["role"] == "admin"

    response = client.post(members_url, json={"user_id": MEMBER}, headers=auth_headers(ADMIN))
    assert response.status_code == 201

    response = client.post(members_url, json={"user_id": OUTSIDER}, headers=auth_headers(MEMBER))
    assert response.status_code == 403

    response = client.get(members_url, headers=auth_headers(MEMBER))
    assert response.status_code == 200
    assert response.json()["total"] == 3

    response = client.delete(f"{members_url}/{MEMBER}", headers=auth_headers(ADMIN))
    assert response.status_code == 204

    response = client.post(f"{API}/channels/{channel['id']}/leave", headers=auth_headers(OWNER))
    assert response.status_code == 409
    assert response.json()["code"] == "cannot_leave_owner"


def test_invite_join_and_ban(client):
    channel = _create_channel(client)

    response = client.post(
        f"{API}/channels/{channel['id']}/invites", json={}, headers=auth_headers(OWNER)
    )
    assert response.status_code == 201
    code = response.json()["code"]

    response = client.get(f"{API}/invites/{code}", headers=auth_headers(OUTSIDER))
    assert response.status_code == 200

    response = client.post(f"{API}/invites/{code}/join", headers=auth_headers(MEMBER))
    assert response.status_code == 200
    assert response.json()["role"] == "member"

    response = client.post(f"{API}/invites/{code}/join", headers=auth_headers(MEMBER))
    assert response.status_code == 409
    assert response.json()["code"] == "already_member"

    response = client.post(
        f"{API}/channels/{channel['id']}/bans/{OUTSIDER}",
        json={"reason": "spam"},
        headers=auth_headers(OWNER),
    )
    assert response.status_code == 201

    response = client.post(f"{API}/invites/{code}/join", headers=auth_headers(OUTSIDER))
    assert response.status_code == 403
    assert response.json()["code"] == "user_banned"

    response = client.post(f"{API}/invites/BADCODE1/join", headers=auth_headers(OUTSIDER))
    assert response.status_code == 404


def test_archive_and_delete(client):
    channel = _create_channel(client)
    url = f"{API}/channels/{channel['id']}"

    response = client.post(f"{url}/archive", headers=auth_headers(OWNER))
    assert response.status_code == 200
    assert response.json()["is_archived"] is True

    response = client.post(f"{url}/members", json={"user_id": MEMBER}, headers=auth_headers(OWNER))
    assert response.status_code == 409
    assert response.json()["code"] == "channel_archived"

    response = client.delete(url, headers=auth_headers(OWNER))
    assert response.status_code == 204

    response = client.get(url, headers=auth_headers(OWNER))
    assert response.status_code == 404


def test_metrics_are_public(client):
    response = client.get("/metrics")
    assert response.status_code == 200
