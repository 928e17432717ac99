# tests/test_guards.py

"""
Route guards on feature endpoints.
"""

import pytest
from fastapi import APIRouter, Depends
from fastapi.testclient import TestClient

from dependencies.page_access import requires_page, requires_page_capability
from models.enums import PageCapability


@pytest.fixture
def guarded_client(app):
    router = APIRouter(prefix="/leave")

    @router.get("", dependencies=[Depends(requires_page("Leave"))])
    def list_leave():
        return {"items": []}

    @router.post("", dependencies=[Depends(requires_page_capability("Leave", PageCapability.submit))])
    def submit_leave():
        return {"submitted": True}

    @router.post("/{leave_id}/approve",
                 dependencies=[Depends(requires_page_capability("Leave", PageCapability.approve))])
    def approve_leave(leave_id: str):
        return {"approved": leave_id}

    app.include_router(router)
    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.parametrize("level, read, submit, approve", [
    ("full", 200, 200, 200),
    ("view", 200, 403, 403),
    ("partial", 200, 200, 403),
    ("none", 403, 403, 403),
])
def test_leave_guards_by_level(guarded_client, login, fake_client, level, read, submit, approve):
    fake_client.seed("role_permissions", {"role": "Nurse", "pages": {"Leave": level}})
    login("Nurse")

    assert guarded_client.get("/leave").status_code == read
    assert guarded_client.post("/leave").status_code == submit
    assert guarded_client.post("/leave/7/approve").status_code == approve


def test_disabled_page_blocks_admin(guarded_client, login, engine):
    login("admin")
    assert guarded_client.get("/leave").status_code == 200

    engine.page_controls.set_enabled("Leave", False)

    assert guarded_client.get("/leave").status_code == 403
    assert guarded_client.post("/leave").status_code == 403


def test_guard_denies_when_permissions_unavailable(guarded_client, login, engine, monkeypatch):
    def boom(role):
        raise RuntimeError("store down")
    monkeypatch.setattr(engine.permissions, "get_record", boom)
    login("Nurse")

    assert guarded_client.get("/leave").status_code == 403
