import json
from datetime import datetime, timedelta, timezone

import pytest

from venuebook.core.config import settings
from venuebook.core.security import create_refresh_token

from conftest import auth, movie_data

API = "/api/v1"


def future(days: int = 2) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).date().isoformat()


@pytest.fixture
def jane(make_user):
    return make_user("jane@x.com")


@pytest.fixture
def support(make_user):
    return make_user("support101@venuebook.local", roles=("support",))


@pytest.fixture
def admin(make_user):
    return make_user("admin101@venuebook.local", roles=("admin",))


def create(client, principal, booking_type="movie", data=None):
    body = {"bookingType": booking_type, "bookingData": data or movie_data(future())}
    return client.post(f"{API}/bookings", json=body, headers=auth(principal))


def test_register_login_me(client):
    r = client.post(f"{API}/auth/register", json={"email": "New@X.com", "password": "secret123", "fullName": "New"})
    assert r.status_code == 201
    r = client.post(f"{API}/auth/login", json={"email": "new@x.com", "password": "secret123"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "new@x.com"
    assert me["roles"] == []
    assert client.post(f"{API}/auth/register", json={"email": "new@x.com", "password": "secret123"}).status_code == 409
    assert client.post(f"{API}/auth/login", json={"email": "new@x.com", "password": "wrong"}).status_code == 401


def test_refresh_rejects_access_token(client, jane):
    assert client.post(f"{API}/auth/refresh", params={"refresh_token": create_refresh_token(jane.user_id)}).status_code == 200
    bad = auth(jane)["Authorization"].split()[1]
    assert client.post(f"{API}/auth/refresh", params={"refresh_token": bad}).status_code == 401


def test_create_booking(client, jane, outbox):
    r = create(client, jane, data=movie_data(future(), seats="3"))
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "confirmed"
    assert body["displayStatus"] == "confirmed"
    assert body["bookingData"]["seats"] == 3
    assert body["ownerId"] == jane.user_id
    assert body["emailWarning"] is None
    assert len(outbox.sent) == 1

    listed = client.get(f"{API}/bookings", headers=auth(jane)).json()["items"]
    assert [b["id"] for b in listed] == [body["id"]]


def test_create_validation_errors(client, jane):
    data = {**movie_data(future()), "event": "concert", "tickets": 25, "category": "vip"}
    r = create(client, jane, "event", data)
    assert r.status_code == 422
    errors = r.json()["detail"]["errors"]
    assert {"field": "tickets", "message": "Maximum 10 tickets allowed"} in errors


def test_create_requires_login(client):
    r = client.post(f"{API}/bookings", json={"bookingType": "movie", "bookingData": movie_data(future())})
    assert r.status_code == 401


def test_invalid_token(client):
    r = client.get(f"{API}/bookings", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_foreign_booking_is_forbidden(client, jane, make_user):
    booking_id = create(client, jane).json()["id"]
    mallory = make_user("mallory@x.com")
    assert client.get(f"{API}/bookings/{booking_id}", headers=auth(mallory)).status_code == 403
    r = client.patch(f"{API}/bookings/{booking_id}", json={"bookingData": {"seats": 9}}, headers=auth(mallory))
    assert r.status_code == 403
    assert client.get(f"{API}/bookings/missing", headers=auth(jane)).status_code == 404


def test_owner_edit_and_cancel(client, jane):
    booking_id = create(client, jane).json()["id"]
    r = client.patch(f"{API}/bookings/{booking_id}", json={"bookingData": {"seats": 5}}, headers=auth(jane))
    assert r.status_code == 200
    assert r.json()["bookingData"]["seats"] == 5

    r = client.post(f"{API}/bookings/{booking_id}/status", json={"status": "cancelled"}, headers=auth(jane))
    assert r.json()["status"] == "cancelled"
    r = client.patch(f"{API}/bookings/{booking_id}", json={"bookingData": {"seats": 6}}, headers=auth(jane))
    assert r.status_code == 422
    assert r.json()["detail"]["errors"][0]["field"] == "status"


def test_support_search_edit_and_history(client, jane, support):
    created = create(client, jane).json()
    ref = created["bookingReference"]
    assert client.get(f"{API}/support/bookings/search", params={"reference": ref}, headers=auth(jane)).status_code == 403

    r = client.get(f"{API}/support/bookings/search", params={"reference": ref.lower()}, headers=auth(support))
    assert r.status_code == 200
    assert r.json()["id"] == created["id"]

    r = client.patch(f"{API}/bookings/{created['id']}", json={"bookingData": {"screen": "3"}}, headers=auth(support))
    assert r.status_code == 200
    edited = r.json()
    assert edited["bookingData"]["screen"] == "3"
    qr = json.loads(edited["qrCodeData"])
    assert qr["data"]["screen"] == "3"
    assert qr["ownerId"] == jane.user_id
    r = client.post(f"{API}/bookings/{created['id']}/status", json={"status": "used"}, headers=auth(support))
    assert r.json()["status"] == "used"

    history = client.get(f"{API}/support/bookings/{created['id']}/history", headers=auth(support)).json()
    assert {h["action"] for h in history} == {"booking.create", "booking.edit", "booking.used"}

    missing = client.get(f"{API}/support/bookings/search", params={"reference": "BK00000000"}, headers=auth(support))
    assert missing.status_code == 404


def test_qr_png(client, jane):
    booking_id = create(client, jane).json()["id"]
    r = client.get(f"{API}/bookings/{booking_id}/qr.png", headers=auth(jane))
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content.startswith(b"\x89PNG")


def test_send_email(client, jane, outbox):
    booking_id = create(client, jane).json()["id"]
    r = client.post(f"{API}/notifications/booking-email", json={"bookingId": booking_id, "userEmail": "jane@x.com"},
                    headers=auth(jane))
    assert r.status_code == 200
    assert r.json()["status"] == "sent"

    r = client.post(f"{API}/notifications/booking-email", json={"bookingId": booking_id, "userEmail": "evil@x.com"},
                    headers=auth(jane))
    assert r.status_code == 403

    outbox.fail = True
    r = client.post(f"{API}/notifications/booking-email", json={"bookingId": booking_id, "userEmail": "jane@x.com"},
                    headers=auth(jane))
    assert r.status_code == 502


def test_admin_roles(client, admin, jane, support):
    assert client.get(f"{API}/admin/users", headers=auth(support)).status_code == 403
    r = client.post(f"{API}/admin/users/{jane.user_id}/roles", params={"role": "support"}, headers=auth(admin))
    assert r.json()["roles"] == ["support"]
    assert client.post(f"{API}/admin/users/{jane.user_id}/roles", params={"role": "root"},
                       headers=auth(admin)).status_code == 400
    me = client.get(f"{API}/auth/me", headers=auth(jane)).json()
    assert me["roles"] == ["support"]

    r = client.delete(f"{API}/admin/users/{jane.user_id}/roles/support", headers=auth(admin))
    assert r.json()["roles"] == []
    users = client.get(f"{API}/admin/users", params={"q": "jane"}, headers=auth(admin)).json()
    assert users["total"] == 1


def test_admin_setup_users(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_SEED_PASSWORD", "admin-pass")
    monkeypatch.setattr(settings, "SUPPORT_SEED_PASSWORD", "")
    results = client.post(f"{API}/admin/setup-users", headers=auth(admin)).json()["results"]
    by_email = {r["email"]: r for r in results}
    assert by_email["admin101@venuebook.local"]["status"] == "already_exists"
    assert by_email["admin102@venuebook.local"]["status"] == "created"
    assert by_email["support101@venuebook.local"]["status"] == "skipped"

    login = client.post(f"{API}/auth/login", json={"email": "admin102@venuebook.local", "password": "admin-pass"})
    assert login.status_code == 200


def test_admin_cleanup(client, admin, jane):
    create(client, jane)
    r = client.post(f"{API}/admin/cleanup", headers=auth(admin))
    assert r.json() == {"success": True, "deleted": 0}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_password_minimum_is_the_same_everywhere(client, jane):
    r = client.post(f"{API}/auth/register", json={"email": "short@x.com", "password": "seven77"})
    assert r.status_code == 400
    assert client.post(f"{API}/auth/register", json={"email": "ok@x.com", "password": "eight888"}).status_code == 201

    r = client.post(f"{API}/auth/change-password", params={"oldPassword": "secret123", "newPassword": "seven77"},
                    headers=auth(jane))
    assert r.status_code == 400
    r = client.post(f"{API}/auth/change-password", params={"oldPassword": "secret123", "newPassword": "eight888"},
                    headers=auth(jane))
    assert r.json() == {"ok": True}
