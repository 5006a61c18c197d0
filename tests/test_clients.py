"""Client registration, login, profile and staff views of clients."""
from conftest import auth
from print_station.config import get_settings
from print_station.routers import clients as clients_router
from print_station.services import otp as otp_service
from print_station.services.auth import ClientPrincipal, decode_principal

REGISTRATION = {
    "email": "jane@example.com",
    "password": "client-pass",
    "fullName": "Jane Customer",
    "phoneNumber": "+1 555 123 4567",
}


def test_register_and_login(client):
    r = client.post("/clients/register", json=REGISTRATION)
    assert r.status_code == 201, r.text
    created = r.json()["data"]["client"]
    assert created["fullName"] == "Jane Customer"
    assert created["phoneNumber"] == "+1 555 123 4567"

    r = client.post("/clients/login", json={"email": "jane@example.com", "password": "client-pass"})
    assert r.status_code == 200
    principal = decode_principal(r.json()["data"]["token"])
    assert isinstance(principal, ClientPrincipal)
    assert principal.type == "client"
    assert principal.id == created["id"]


def test_login_wrong_password(client, make_client):
    make_client(email="jane@example.com", password="client-pass")
    r = client.post("/clients/login", json={"email": "jane@example.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid email or password"


def test_client_cannot_use_staff_login(client, make_client):
    make_client(email="jane@example.com", password="client-pass")
    assert client.post("/auth/login", json={"email": "jane@example.com", "password": "client-pass"}).status_code == 401


def test_duplicate_client_email_conflict(client, make_client):
    make_client(email="jane@example.com")
    assert client.post("/clients/register", json=REGISTRATION).status_code == 409


def test_email_spaces_are_per_account_kind(client, make_admin):
    make_admin(email="jane@example.com")
    assert client.post("/clients/register", json=REGISTRATION).status_code == 201


def test_register_validation(client):
    r = client.post("/clients/register", json={**REGISTRATION, "phoneNumber": "12", "fullName": "J"})
    assert r.status_code == 400
    assert {e["field"] for e in r.json()["errors"]} == {"phoneNumber", "fullName"}


def test_registration_requires_verified_email_when_enabled(client, mailer, db, monkeypatch):
    strict = get_settings().model_copy(update={"require_verified_email": True})
    monkeypatch.setattr(clients_router, "get_settings", lambda: strict)

    r = client.post("/clients/register", json=REGISTRATION)
    assert r.status_code == 400
    assert "not verified" in r.json()["message"]

    otp = otp_service.send_otp(db, REGISTRATION["email"], mailer)
    otp_service.verify_otp(db, REGISTRATION["email"], otp.code)
    assert client.post("/clients/register", json=REGISTRATION).status_code == 201
    # Verification is consumed by the registration
    assert otp_service.check_verified(db, REGISTRATION["email"]) is None


def test_profile_and_change_password(client, make_client):
    c, token = make_client(password="client-pass")
    h = auth(token)
    r = client.put("/clients/profile", json={"fullName": "Jane Q. Customer"}, headers=h)
    assert r.status_code == 200
    assert client.get("/clients/profile", headers=h).json()["data"]["client"]["fullName"] == "Jane Q. Customer"

    r = client.put(
        "/clients/profile/change-password",
        json={"currentPassword": "client-pass", "newPassword": "better-pass"},
        headers=h,
    )
    assert r.status_code == 200
    assert client.post("/clients/login", json={"email": c.email, "password": "better-pass"}).status_code == 200


def test_profile_requires_client_token(client, make_admin):
    _, admin_token = make_admin()
    assert client.get("/clients/profile", headers=auth(admin_token)).status_code == 403


def test_client_sees_only_own_jobs(client, submit, make_admin, make_client):
    admin, _ = make_admin()
    me, my_token = make_client()
    other, _ = make_client()
    submit(me.id, admin.id)
    submit(other.id, admin.id)

    r = client.get("/clients/jobs", headers=auth(my_token))
    assert r.status_code == 200
    jobs = r.json()["data"]["jobs"]
    assert len(jobs) == 1
    assert jobs[0]["clientId"] == me.id


def test_client_token_cannot_read_staff_job_routes(client, submit, make_admin, make_client):
    admin, _ = make_admin()
    me, my_token = make_client()
    job_id = submit(me.id, admin.id).json()["data"]["job"]["id"]
    assert client.get(f"/print/jobs/{job_id}", headers=auth(my_token)).status_code == 403


def test_staff_list_and_get_clients(client, make_admin, make_clerk, make_client):
    admin, _ = make_admin()
    _, clerk_token = make_clerk(admin)
    c, client_token = make_client()

    r = client.get("/clients", headers=auth(clerk_token))
    assert r.status_code == 200
    assert [x["id"] for x in r.json()["data"]["clients"]] == [c.id]
    assert client.get(f"/clients/{c.id}", headers=auth(clerk_token)).status_code == 200
    assert client.get("/clients/9999", headers=auth(clerk_token)).status_code == 404
    assert client.get("/clients", headers=auth(client_token)).status_code == 403


def test_staff_client_jobs_are_tenant_scoped(client, submit, make_admin, make_client):
    admin_a, token_a = make_admin()
    admin_b, token_b = make_admin()
    c, _ = make_client()
    submit(c.id, admin_a.id)
    submit(c.id, admin_b.id)
    submit(c.id, admin_b.id)

    assert client.get(f"/clients/{c.id}/jobs", headers=auth(token_a)).json()["data"]["pagination"]["totalRecords"] == 1
    assert client.get(f"/clients/{c.id}/jobs", headers=auth(token_b)).json()["data"]["pagination"]["totalRecords"] == 2


def test_admin_deactivates_client(client, make_admin, make_clerk, make_client):
    admin, token = make_admin()
    _, clerk_token = make_clerk(admin)
    c, client_token = make_client(password="client-pass")

    assert client.delete(f"/clients/{c.id}", headers=auth(clerk_token)).status_code == 403
    assert client.delete(f"/clients/{c.id}", headers=auth(token)).status_code == 200
    assert client.post("/clients/login", json={"email": c.email, "password": "client-pass"}).status_code == 401
    assert client.get("/clients/profile", headers=auth(client_token)).status_code == 401

    r = client.put(f"/clients/{c.id}", json={"isActive": True}, headers=auth(token))
    assert r.json()["data"]["client"]["isActive"] is True
    stats = client.get("/clients/stats", headers=auth(token)).json()["data"]
    assert stats["activeClients"] == 1
    assert stats["inactiveClients"] == 0
