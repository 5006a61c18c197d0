"""Admin management of clerks."""
from conftest import auth
from print_station.models.clerk import Clerk
from print_station.models.permissions import UserRole, default_permissions
from print_station.services.auth import decode_principal


def _create(client, token, **body):
    payload = {"email": "desk@example.com", "name": "Front Desk"}
    payload.update(body)
    return client.post("/users", json=payload, headers=auth(token))


def test_create_clerk_with_empty_permissions_gets_defaults(client, make_admin, mailer):
    admin, token = make_admin(name="Main Station")
    r = _create(client, token, permissions=[])
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    user = data["user"]
    assert user["role"] == "clerk"
    assert user["adminId"] == admin.id
    assert user["isTemporaryPassword"] is True
    assert set(user["permissions"]) == set(default_permissions(UserRole.clerk))
    # Welcome email carries the generated password; it is not echoed back
    assert data["emailSent"] is True
    assert "temporaryPassword" not in data
    assert mailer.sent[-1]["to"] == "desk@example.com"
    assert "Main Station" in mailer.sent[-1]["text"]


def test_generated_password_returned_when_email_fails(client, make_admin, mailer):
    _, token = make_admin()
    mailer.fail = True
    r = _create(client, token)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["emailSent"] is False
    r = client.post("/auth/login", json={"email": "desk@example.com", "password": data["temporaryPassword"]})
    assert r.status_code == 200


def test_create_clerk_with_explicit_permissions(client, make_admin):
    _, token = make_admin()
    r = _create(client, token, password="chosen-pw", permissions=["view_agents", "manage_jobs", "view_agents"])
    assert r.json()["data"]["user"]["permissions"] == ["view_agents", "manage_jobs"]
    assert client.post("/auth/login", json={"email": "desk@example.com", "password": "chosen-pw"}).status_code == 200


def test_create_clerk_rejects_unknown_permission(client, make_admin):
    _, token = make_admin()
    assert _create(client, token, permissions=["launch_rockets"]).status_code == 400


def test_duplicate_clerk_email_conflict(client, make_admin):
    _, token = make_admin()
    assert _create(client, token).status_code == 201
    assert _create(client, token).status_code == 409


def test_clerk_cannot_manage_users(client, make_admin, make_clerk):
    admin, _ = make_admin()
    _, clerk_token = make_clerk(admin)
    assert client.get("/users", headers=auth(clerk_token)).status_code == 403
    assert _create(client, clerk_token).status_code == 403


def test_create_clerk_requires_manage_users(client, db, make_admin):
    admin, token = make_admin()
    admin.permissions = ["view_analytics", "view_all_jobs"]
    db.commit()
    r = _create(client, token)
    assert r.status_code == 403
    assert db.query(Clerk).count() == 0


def test_admin_only_sees_own_clerks(client, make_admin, make_clerk):
    admin_a, token_a = make_admin()
    admin_b, token_b = make_admin()
    clerk_a, _ = make_clerk(admin_a)
    make_clerk(admin_b)

    r = client.get("/users", headers=auth(token_a))
    users = r.json()["data"]["users"]
    assert [u["id"] for u in users] == [clerk_a.id]

    assert client.get(f"/users/{clerk_a.id}", headers=auth(token_b)).status_code == 404
    assert client.put(f"/users/{clerk_a.id}", json={"name": "Hijacked"}, headers=auth(token_b)).status_code == 404


def test_update_clerk(client, make_admin, make_clerk):
    admin, token = make_admin()
    clerk, _ = make_clerk(admin)
    r = client.put(
        f"/users/{clerk.id}",
        json={"name": "Night Shift", "permissions": ["manage_jobs"]},
        headers=auth(token),
    )
    assert r.status_code == 200
    user = r.json()["data"]["user"]
    assert user["name"] == "Night Shift"
    assert user["permissions"] == ["manage_jobs"]


def test_deactivated_clerk_is_locked_out(client, make_admin, make_clerk):
    admin, token = make_admin()
    clerk, clerk_token = make_clerk(admin, password="clerk-pass")
    assert client.delete(f"/users/{clerk.id}", headers=auth(token)).status_code == 200
    assert client.post("/auth/login", json={"email": clerk.email, "password": "clerk-pass"}).status_code == 401
    # Outstanding tokens stop working too
    assert client.get("/print/jobs", headers=auth(clerk_token)).status_code == 401


def test_reset_password(client, db, make_admin, make_clerk, mailer):
    admin, token = make_admin()
    clerk, clerk_token = make_clerk(admin, password="clerk-pass")
    client.put(
        "/auth/change-password",
        json={"currentPassword": "clerk-pass", "newPassword": "own-pass"},
        headers=auth(clerk_token),
    )
    r = client.put(f"/users/{clerk.id}/reset-password", json={"newPassword": "fresh-pass"}, headers=auth(token))
    assert r.status_code == 200
    assert r.json()["data"]["emailSent"] is True
    r = client.post("/auth/login", json={"email": clerk.email, "password": "fresh-pass"})
    assert r.status_code == 200
    assert r.json()["data"]["user"]["isTemporaryPassword"] is True
    assert isinstance(decode_principal(r.json()["data"]["token"]).admin_id, int)


def test_clerk_stats(client, make_admin, make_clerk):
    admin, token = make_admin()
    make_clerk(admin)
    inactive, _ = make_clerk(admin)
    client.delete(f"/users/{inactive.id}", headers=auth(token))
    data = client.get("/users/stats", headers=auth(token)).json()["data"]
    assert data["totalClerks"] == 2
    assert data["activeClerks"] == 1
    assert data["inactiveClerks"] == 1
    assert len(data["recentClerks"]) == 1


def test_clerk_rows_keep_admin_link(db, make_admin, make_clerk):
    admin, _ = make_admin()
    clerk, _ = make_clerk(admin)
    assert db.get(Clerk, clerk.id).admin.id == admin.id
