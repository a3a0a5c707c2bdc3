"""
Name: Directory API Tests (FastAPI TestClient, in-memory backend)

Responsibilities:
  - Login / logout / me / access over HTTP (token + cookie)
  - Admission mapping: 401 anonymous, 403 ACCESS_RESTRICTED outside the
    allowed ranges, admins exempt
  - Capability gates per role (view / edit / administer)
  - RFC 7807 error shape

Notes:
  - TRUST_FORWARDED_HEADERS=true so X-Forwarded-For drives the origin;
    without it the TestClient peer ("testclient") is not an IPv4 address and
    the lookup fails open
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from contact_directory.api.main import create_app
from contact_directory.container import (
    get_identity_provider,
    get_profile_repository,
    reset_container,
)
from contact_directory.crosscutting.config import get_settings
from contact_directory.crosscutting.exceptions import (
    ACCOUNT_DEACTIVATED_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
)
from contact_directory.domain.entities import Profile, ProfileStatus, Role, utcnow

pytestmark = pytest.mark.unit

PASSWORD = "secret123"
OUTSIDE = {"X-Forwarded-For": "8.8.8.8"}
INSIDE = {"X-Forwarded-For": "10.20.30.40"}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("PERSISTENCE_BACKEND", "memory")
    monkeypatch.setenv("ORIGIN_LOOKUP_MODE", "request")
    monkeypatch.setenv("TRUST_FORWARDED_HEADERS", "true")
    monkeypatch.setenv("DEV_SEED_ADMIN", "false")
    get_settings.cache_clear()
    reset_container()

    with TestClient(create_app()) as test_client:
        yield test_client

    get_settings.cache_clear()
    reset_container()


def _seed(email: str, role: Role, status: ProfileStatus = ProfileStatus.ACTIVE) -> str:
    async def _create() -> str:
        handle = await get_identity_provider().create_account(email, PASSWORD)
        now = utcnow()
        await get_profile_repository().save_profile(
            Profile(
                uid=handle.uid,
                email=email,
                name=email.split("@")[0].title(),
                role=role,
                status=status,
                created_at=now,
                updated_at=now,
                created_by="test",
            )
        )
        return handle.uid

    return asyncio.run(_create())


def _login(client: TestClient, email: str, headers=None) -> dict:
    response = client.post(
        "/auth/login", json={"email": email, "password": PASSWORD}, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()


def _auth(token: str, extra=None) -> dict:
    return {"Authorization": f"Bearer {token}", **(extra or {})}


def _assert_problem(response, status: int, code: str) -> dict:
    assert response.status_code == status, response.text
    assert response.headers["content-type"].startswith("application/problem+json")
    body = response.json()
    assert body["status"] == status
    assert body["code"] == code
    assert body["title"]
    assert body["detail"]
    assert body["instance"].startswith("http://testserver/")
    return body


# =============================================================================
# Auth
# =============================================================================


def test_login_returns_token_and_cookie(client):
    _seed("admin@example.com", Role.ADMIN)

    response = client.post(
        "/auth/login", json={"email": " admin@example.com ", "password": PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "Admin"
    assert body["admission"] == "allow"
    assert body["restricted"] is False
    assert response.cookies.get("session_token") == body["access_token"]

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "admin@example.com"


def test_login_failures_are_generic(client):
    _seed("view@example.com", Role.VIEW)

    wrong_password = client.post(
        "/auth/login", json={"email": "view@example.com", "password": "nope-nope"}
    )
    unknown_user = client.post(
        "/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
    )

    for response in (wrong_password, unknown_user):
        body = _assert_problem(response, 401, "UNAUTHORIZED")
        assert body["detail"] == INVALID_CREDENTIALS_MESSAGE


def test_login_inactive_account(client):
    _seed("off@example.com", Role.EDIT, ProfileStatus.INACTIVE)

    response = client.post(
        "/auth/login", json={"email": "off@example.com", "password": PASSWORD}
    )

    body = _assert_problem(response, 403, "ACCOUNT_DEACTIVATED")
    assert body["detail"] == ACCOUNT_DEACTIVATED_MESSAGE


def test_anonymous_requests_are_unauthorized(client):
    _assert_problem(client.get("/contacts"), 401, "UNAUTHORIZED")
    _assert_problem(client.get("/auth/me"), 401, "UNAUTHORIZED")
    _assert_problem(
        client.get("/contacts", headers=_auth("not-a-token")), 401, "UNAUTHORIZED"
    )


def test_access_endpoint_never_401(client):
    response = client.get("/auth/access")

    assert response.status_code == 200
    assert response.json() == {
        "authenticated": False,
        "admission": "redirect_login",
        "restricted": False,
        "role": None,
        "capabilities": [],
    }


def test_logout_ends_the_session(client):
    _seed("edit@example.com", Role.EDIT)
    token = _login(client, "edit@example.com")["access_token"]

    assert client.post("/auth/logout", headers=_auth(token)).json() == {"ok": True}

    client.cookies.clear()
    _assert_problem(client.get("/contacts", headers=_auth(token)), 401, "UNAUTHORIZED")
    # Idempotent
    assert client.post("/auth/logout").status_code == 200


# =============================================================================
# Capabilities
# =============================================================================


def test_view_role_reads_only(client):
    _seed("view@example.com", Role.VIEW)
    token = _login(client, "view@example.com")["access_token"]

    assert client.get("/contacts", headers=_auth(token)).status_code == 200
    _assert_problem(
        client.post("/contacts", json={"name": "X"}, headers=_auth(token)), 403, "FORBIDDEN"
    )
    _assert_problem(client.get("/admin/users", headers=_auth(token)), 403, "FORBIDDEN")

    access = client.get("/auth/access", headers=_auth(token)).json()
    assert access["capabilities"] == ["view"]


def test_edit_role_manages_single_contacts(client):
    _seed("edit@example.com", Role.EDIT)
    headers = _auth(_login(client, "edit@example.com")["access_token"])

    created = client.post(
        "/contacts", json={"name": "Ada Lovelace", "company": "Engines"}, headers=headers
    )
    assert created.status_code == 201
    contact_id = created.json()["id"]

    updated = client.put(f"/contacts/{contact_id}", json={"title": "Analyst"}, headers=headers)
    assert updated.json()["title"] == "Analyst"

    found = client.get("/contacts", params={"q": "engines"}, headers=headers).json()
    assert [c["id"] for c in found] == [contact_id]

    _assert_problem(client.delete("/contacts", headers=headers), 403, "FORBIDDEN")
    _assert_problem(client.get("/contacts/export", headers=headers), 403, "FORBIDDEN")

    assert client.delete(f"/contacts/{contact_id}", headers=headers).json() == {"ok": True}
    _assert_problem(client.get(f"/contacts/{contact_id}", headers=headers), 404, "NOT_FOUND")


def test_contact_validation_errors(client):
    _seed("edit@example.com", Role.EDIT)
    headers = _auth(_login(client, "edit@example.com")["access_token"])

    _assert_problem(
        client.post("/contacts", json={"company": "No name"}, headers=headers),
        400,
        "VALIDATION_ERROR",
    )


def test_admin_bulk_contact_operations(client):
    _seed("admin@example.com", Role.ADMIN)
    headers = _auth(_login(client, "admin@example.com")["access_token"])

    imported = client.post(
        "/contacts/import",
        json={"contacts": [{"name": "A"}, {"company": "skip me"}, {"name": "B"}]},
        headers=headers,
    )
    assert imported.json() == {
        "imported": 2,
        "skipped": [{"row": 2, "reason": "Missing name"}],
    }

    exported = client.get("/contacts/export", headers=headers).json()
    assert exported["count"] == 2

    assert client.delete("/contacts", headers=headers).json() == {"deleted": 2}


# =============================================================================
# IP restrictions
# =============================================================================


def _enable_restrictions(client: TestClient, admin_headers: dict, ranges: list[str]):
    response = client.put(
        "/admin/restrictions",
        json={"enabled": True, "allowed_ranges": ranges},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_restrictions_default_document(client):
    _seed("admin@example.com", Role.ADMIN)
    headers = _auth(_login(client, "admin@example.com")["access_token"])

    body = client.get("/admin/restrictions", headers=headers).json()

    assert body["enabled"] is False
    assert body["allowed_ranges"] == ["127.0.0.1", "192.168.0.0/16", "10.0.0.0/8"]


def test_restrictions_update_reports_rejected_ranges(client):
    admin_uid = _seed("admin@example.com", Role.ADMIN)
    headers = _auth(_login(client, "admin@example.com")["access_token"])

    body = _enable_restrictions(client, headers, ["10.0.0.0/8", "bogus", "300.1.1.1"])

    assert body["allowed_ranges"] == ["10.0.0.0/8"]
    assert body["rejected_ranges"] == ["bogus", "300.1.1.1"]
    assert body["updated_by"] == admin_uid


def test_parse_preview(client):
    _seed("admin@example.com", Role.ADMIN)
    headers = _auth(_login(client, "admin@example.com")["access_token"])

    body = client.post(
        "/admin/restrictions/parse",
        json={"text": "10.0.0.0/8\n\nnope\n 192.168.1.1 "},
        headers=headers,
    ).json()

    assert body["accepted"] == ["10.0.0.0/8", "192.168.1.1"]
    assert body["rejected"] == ["nope"]
    assert body["normalized_text"] == "10.0.0.0/8\n192.168.1.1"


def test_non_admin_outside_allowed_ranges_is_restricted(client):
    _seed("admin@example.com", Role.ADMIN)
    _seed("view@example.com", Role.VIEW)
    admin_headers = _auth(_login(client, "admin@example.com", OUTSIDE)["access_token"])
    _enable_restrictions(client, admin_headers, ["10.0.0.0/8"])

    login = _login(client, "view@example.com", OUTSIDE)
    assert login["admission"] == "redirect_restricted"
    assert login["restricted"] is True

    viewer = login["access_token"]
    body = _assert_problem(
        client.get("/contacts", headers=_auth(viewer, OUTSIDE)), 403, "ACCESS_RESTRICTED"
    )
    assert "network" in body["detail"]

    assert client.get("/contacts", headers=_auth(viewer, INSIDE)).status_code == 200

    access = client.get("/auth/access", headers=_auth(viewer, OUTSIDE)).json()
    assert access["admission"] == "redirect_restricted"
    assert access["restricted"] is True

    # Admins are never restricted
    assert client.get("/contacts", headers={**admin_headers, **OUTSIDE}).status_code == 200


def test_disabled_restrictions_allow_everyone(client):
    _seed("view@example.com", Role.VIEW)
    token = _login(client, "view@example.com", OUTSIDE)["access_token"]

    assert client.get("/contacts", headers=_auth(token, OUTSIDE)).status_code == 200


# =============================================================================
# User administration
# =============================================================================


def test_admin_user_lifecycle(client):
    _seed("admin@example.com", Role.ADMIN)
    headers = _auth(_login(client, "admin@example.com")["access_token"])

    created = client.post(
        "/admin/users",
        json={"email": "new@example.com", "name": "New", "password": PASSWORD, "role": "Edit"},
        headers=headers,
    )
    assert created.status_code == 201
    uid = created.json()["uid"]

    duplicate = client.post(
        "/admin/users",
        json={"email": "NEW@example.com", "name": "Dup", "password": PASSWORD},
        headers=headers,
    )
    _assert_problem(duplicate, 409, "CONFLICT")

    short = client.post(
        "/admin/users",
        json={"email": "short@example.com", "name": "Short", "password": "123"},
        headers=headers,
    )
    _assert_problem(short, 400, "VALIDATION_ERROR")

    promoted = client.patch(f"/admin/users/{uid}", json={"role": "Admin"}, headers=headers)
    assert promoted.json()["role"] == "Admin"

    user_token = _login(client, "new@example.com")["access_token"]

    deactivated = client.post(
        f"/admin/users/{uid}/status", json={"status": "Inactive"}, headers=headers
    )
    assert deactivated.json()["status"] == "Inactive"
    _assert_problem(
        client.get("/contacts", headers=_auth(user_token)), 401, "UNAUTHORIZED"
    )

    assert client.delete(f"/admin/users/{uid}", headers=headers).json() == {"ok": True}
    emails = [u["email"] for u in client.get("/admin/users", headers=headers).json()]
    assert emails == ["admin@example.com"]

    _assert_problem(client.delete(f"/admin/users/{uid}", headers=headers), 404, "NOT_FOUND")


def test_healthz(client):
    body = client.get("/healthz").json()
    assert body["ok"] is True
    assert body["db"] == "memory"
