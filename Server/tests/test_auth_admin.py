"""
Tests for login, CSRF tokens, rights and the admin endpoints
"""

from auth import GetCsrfToken, MatchCsrfToken


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_login(client, wiki, sysop):
    """Test that login returns a working bearer token and the user's rights"""
    response = client.post("/auth/login", json={"username": "Sysop", "password": "password123"})
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "Sysop"
    assert body["expires_in"] == 24 * 3600
    assert {"admin", "delete", "apihighlimits"} <= set(body["rights"])

    headers = {"Authorization": f"Bearer {body['token']}"}
    response = client.get("/api/tokens/csrf", headers=headers)
    assert response.status_code == 200
    assert response.json()["csrftoken"] == GetCsrfToken(sysop)


def test_login_rejects_bad_credentials(client, wiki, sysop):
    response = client.post("/auth/login", json={"username": "Sysop", "password": "wrong"})
    assert response.status_code == 401
    response = client.post("/auth/login", json={"username": "Nobody", "password": "password123"})
    assert response.status_code == 401


def test_invalid_bearer_token(client):
    response = client.get("/api/tokens/csrf", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "notloggedin"


def test_csrf_tokens_are_per_user(wiki, sysop, alice):
    assert MatchCsrfToken(sysop, GetCsrfToken(sysop))
    assert not MatchCsrfToken(sysop, GetCsrfToken(alice))
    assert not MatchCsrfToken(sysop, None)


def test_high_limits_for_privileged_callers(client, wiki, sysop):
    wiki.AddImage("Pic.png")
    response = client.get("/api/query/allimages", params={"limit": "600"}, headers=wiki.AuthHeaders(sysop))
    assert response.status_code == 200
    assert "warnings" not in response.json()


def test_admin_settings(client, wiki, sysop):
    """Test reading and partially updating settings"""
    headers = wiki.AuthHeaders(sysop)

    settings = client.get("/admin/api/settings", headers=headers).json()
    assert settings["miser_mode"] is False
    assert settings["delete_revisions_batch_size"] == 1000
    assert settings["watchlist_expiry_max_duration"] == "6 months"

    response = client.post("/admin/api/settings", headers=headers, json={"miser_mode": True, "delete_revisions_batch_size": 50})
    assert response.status_code == 200
    assert response.json()["updated"] == ["delete_revisions_batch_size", "miser_mode"]

    settings = client.get("/admin/api/settings", headers=headers).json()
    assert settings["miser_mode"] is True
    assert settings["delete_revisions_batch_size"] == 50
    assert settings["jwt_expiration_hours"] == 24

    response = client.post("/admin/api/settings", headers=headers, json={"watchlist_expiry_max_duration": "forever"})
    assert response.status_code == 400
    response = client.post("/admin/api/settings", headers=headers, json={"delete_revisions_batch_size": 0})
    assert response.status_code == 422


def test_admin_endpoints_require_admin(client, wiki, alice):
    response = client.get("/admin/api/settings", headers=wiki.AuthHeaders(alice))
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "permissiondenied"


def test_admin_users(client, wiki, sysop):
    """Test creating users and replacing their group memberships"""
    headers = wiki.AuthHeaders(sysop)

    response = client.post("/admin/api/users", headers=headers, json={
        "username": "new_editor", "password": "secret123", "groups": ["user"], "watch_deletion": True
    })
    assert response.status_code == 200
    user_id = response.json()["user_id"]
    assert response.json()["username"] == "New editor"

    response = client.post("/admin/api/users", headers=headers, json={"username": "New editor", "password": "x"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "userexists"

    response = client.post("/admin/api/users", headers=headers, json={"username": "Other", "password": "x", "groups": ["wizards"]})
    assert response.status_code == 400

    response = client.put(f"/admin/api/users/{user_id}/groups", headers=headers, json={"memberships": [
        {"group": "sysop"},
        {"group": "bot", "expiry": "2000-01-01T00:00:00Z"},
    ]})
    assert response.status_code == 200
    # The expired bot membership does not count
    assert response.json()["groups"] == ["sysop"]

    users = {u["username"]: u for u in client.get("/admin/api/users", headers=headers).json()}
    assert users["New editor"]["groups"] == ["sysop"]
    assert users["New editor"]["watch_deletion"] is True

    response = client.put("/admin/api/users/9999/groups", headers=headers, json={"memberships": []})
    assert response.status_code == 404
