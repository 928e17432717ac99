# tests/test_api.py

"""
End-to-end tests through the FastAPI app with an in-memory store.
"""

import pytest


@pytest.fixture
def admin(login):
    return login("admin")


# ------------------------------------------------------------
# Health
# ------------------------------------------------------------
def test_health_app(client):
    response = client.get("/health/app")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_requires_authentication(client):
    response = client.get("/me/permissions")
    assert response.status_code in (401, 403)


# ------------------------------------------------------------
# Startup
# ------------------------------------------------------------
def test_startup_materializes_page_controls(client, fake_client):
    names = {r["page_name"] for r in fake_client.rows("page_controls")}
    assert "Settings" in names
    assert "Dashboard" in names


# ------------------------------------------------------------
# /me
# ------------------------------------------------------------
def test_my_permissions(client, login):
    login("Nurse")

    response = client.get("/me/permissions")

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "Nurse"
    assert data["is_admin"] is False
    assert data["pages"]["Leave"] == "full"


def test_path_guard(client, login, fake_client):
    fake_client.seed("role_permissions", {"role": "Nurse", "pages": {"Payrolls": "not_access"}})
    login("Nurse")

    denied = client.get("/me/access", params={"path": "/payrolls/settings"}).json()
    allowed = client.get("/me/access", params={"path": "/leave/request"}).json()
    outside = client.get("/me/access", params={"path": "/login"}).json()

    assert denied == {"path": "/payrolls/settings", "page_name": "Payrolls", "allowed": False}
    assert allowed["allowed"] is True
    assert outside["page_name"] is None
    assert outside["allowed"] is True


def test_page_guard_unknown_page(client, login):
    login("Nurse")
    assert client.get("/me/access/Inventory").status_code == 404


def test_navigation_hides_denied_pages(client, login, fake_client):
    fake_client.seed("role_permissions", {"role": "Nurse", "pages": {"Payrolls": False}})
    login("Nurse")

    data = client.get("/me/navigation").json()

    bottom = [item["page_name"] for item in data["bottom_nav"]]
    sidebar = [item["page_name"] for section in data["sidebar"] for item in section["items"]]
    assert "Payrolls" not in bottom
    assert sorted(bottom) == sorted(sidebar)


def test_capabilities(client, login, fake_client):
    fake_client.seed("role_permissions", {"role": "Nurse", "pages": {"Overtime": "partial"}})
    login("Nurse")

    data = client.get("/me/capabilities/Overtime").json()

    assert data["permission"] == "partial"
    assert data["can_submit"] is True
    assert data["can_edit_delete"] is False


def test_sign_out_then_sign_back_in(client, login, engine):
    user = login("Nurse")
    client.get("/me/permissions")
    assert engine.cache.get_snapshot(user.id) is not None

    client.post("/me/sign-out")
    assert engine.cache.get_snapshot(user.id) is None

    assert client.get("/me/permissions").status_code == 200


def test_identity_role_change_reloads(client, login):
    login("Nurse", user_id="u1")
    client.get("/me/permissions")

    login("admin", user_id="u1")
    data = client.get("/me/permissions").json()

    assert data["role"] == "admin"
    assert data["is_admin"] is True


# ------------------------------------------------------------
# Administration guard
# ------------------------------------------------------------
def test_view_on_settings_is_not_enough(client, login, fake_client):
    fake_client.seed("role_permissions", {"role": "Nurse", "pages": {"Settings": "view"}})
    login("Nurse")

    assert client.get("/roles").status_code == 403
    assert client.patch("/pages/Leave", json={"enabled": False}).status_code == 403


def test_admin_reaches_settings_when_level_none(client, admin, fake_client):
    fake_client.seed("role_permissions", {"role": "admin", "pages": {"Settings": "none"}})

    assert client.get("/roles").status_code == 200


# ------------------------------------------------------------
# Pages
# ------------------------------------------------------------
def test_list_pages(client, login):
    login("Nurse")

    data = client.get("/pages").json()

    assert data[0]["name"] == "Dashboard"
    assert all(p["enabled"] for p in data)


def test_disable_page_takes_effect_immediately(client, login):
    login("Nurse", user_id="nurse-1")
    assert client.get("/me/access/Staffs").json()["allowed"] is True

    login("admin")
    response = client.patch("/pages/Staffs", json={"enabled": False})
    assert response.status_code == 200
    assert response.json()["enabled"] is False

    login("Nurse", user_id="nurse-1")
    assert client.get("/me/access/Staffs").json()["allowed"] is False


def test_disabling_settings_locks_out_everyone_but_admin(client, login):
    login("admin")
    client.patch("/pages/Settings", json={"enabled": False})
    assert client.get("/me/access/Settings").json()["allowed"] is True
    assert client.get("/roles").status_code == 200

    login("Nurse")
    assert client.get("/me/access/Settings").json()["allowed"] is False
    assert client.get("/roles").status_code == 403


def test_toggle_unknown_page(client, admin):
    assert client.patch("/pages/Inventory", json={"enabled": False}).status_code == 404


def test_toggle_store_failure(client, admin, fake_client):
    fake_client.fail_on.add(("page_controls", "update"))
    assert client.patch("/pages/Leave", json={"enabled": False}).status_code == 503


# ------------------------------------------------------------
# Roles
# ------------------------------------------------------------
def test_create_role(client, admin):
    response = client.post("/roles", json={"name": "Nurse", "description": "Ward staff"})

    assert response.status_code == 201
    assert response.json()["name"] == "Nurse"


def test_create_duplicate_role(client, admin):
    client.post("/roles", json={"name": "Nurse"})
    response = client.post("/roles", json={"name": "NURSE"})

    assert response.status_code == 409


def test_create_blank_role(client, admin):
    assert client.post("/roles", json={"name": "  "}).status_code == 400


def test_rename_role(client, admin, fake_client):
    role_id = client.post("/roles", json={"name": "Nurse"}).json()["id"]
    client.put("/permissions/Nurse/pages/Leave", json={"level": "view"})

    response = client.patch(f"/roles/{role_id}", json={"name": "Senior Nurse"})

    assert response.status_code == 200
    assert response.json()["name"] == "Senior Nurse"
    record = client.get("/permissions/Senior Nurse").json()
    assert record["pages"]["Leave"] == "view"
    assert "Nurse" not in [r["role"] for r in fake_client.rows("role_permissions")]


def test_get_unknown_role(client, admin):
    assert client.get("/roles/999").status_code == 404


def test_delete_role(client, admin, fake_client):
    role_id = client.post("/roles", json={"name": "Nurse"}).json()["id"]
    client.put("/permissions/Nurse/pages/Leave", json={"level": "none"})

    response = client.delete(f"/roles/{role_id}")

    assert response.json() == {"success": True, "deleted": "Nurse"}
    assert "Nurse" not in [r["role"] for r in fake_client.rows("role_permissions")]


def test_deleted_role_sessions_reload(client, login, engine):
    login("admin")
    role_id = client.post("/roles", json={"name": "Nurse"}).json()["id"]
    client.put("/permissions/Nurse/pages/Leave", json={"level": "none"})

    nurse = login("Nurse")
    assert client.get("/me/access/Leave").json()["allowed"] is False

    login("admin")
    client.delete(f"/roles/{role_id}")
    assert engine.cache.get_snapshot(nurse.id) is None

    login("Nurse")
    assert client.get("/me/access/Leave").json()["allowed"] is True


# ------------------------------------------------------------
# Permissions
# ------------------------------------------------------------
def test_levels(client, admin):
    assert client.get("/permissions/levels").json() == ["full", "view", "partial", "none"]


def test_set_level_refreshes_cached_sessions(client, login, add_role):
    add_role("Nurse")
    login("Nurse", user_id="nurse-1")
    assert client.get("/me/access", params={"path": "/payrolls"}).json()["allowed"] is True

    login("admin")
    response = client.put("/permissions/Nurse/pages/Payrolls", json={"level": "none"})
    assert response.status_code == 200
    assert response.json()["pages"]["Payrolls"] == "none"

    login("Nurse", user_id="nurse-1")
    assert client.get("/me/access", params={"path": "/payrolls"}).json()["allowed"] is False


def test_set_level_unknown_page(client, admin, add_role):
    add_role("Nurse")
    response = client.put("/permissions/Nurse/pages/Inventory", json={"level": "none"})
    assert response.status_code == 404


def test_set_level_unknown_role(client, admin):
    response = client.put("/permissions/Ghost/pages/Leave", json={"level": "none"})
    assert response.status_code == 404


def test_set_level_invalid_level(client, admin, add_role):
    add_role("Nurse")
    response = client.put("/permissions/Nurse/pages/Leave", json={"level": "edit"})
    assert response.status_code == 422


def test_batch_update(client, admin, add_role):
    add_role("Nurse")

    response = client.put("/permissions/Nurse", json={"pages": {"Leave": "view", "Payrolls": "none"}})

    pages = response.json()["pages"]
    assert pages["Leave"] == "view"
    assert pages["Payrolls"] == "none"
    assert pages["Dashboard"] == "full"


def test_empty_batch(client, admin, add_role):
    add_role("Nurse")
    assert client.put("/permissions/Nurse", json={"pages": {}}).status_code == 400


def test_reconcile(client, admin, fake_client, add_role):
    add_role("Nurse")
    fake_client.seed(
        "role_permissions",
        {"role": "Nurse", "pages": {}},
        {"role": "Porter", "pages": {}},
    )

    response = client.post("/permissions/reconcile")

    assert "Porter" in response.json()["removed"]
    assert "Nurse" in [r["role"] for r in fake_client.rows("role_permissions")]
