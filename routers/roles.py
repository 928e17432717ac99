# routers/roles.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from core.access_control import AccessControl
from dependencies.page_access import get_engine, requires_settings_admin
from models.role import Role, RoleCreate, RoleRename

router = APIRouter(
    prefix="/roles",
    tags=["Roles"],
    dependencies=[Depends(requires_settings_admin)],
)


# ============================================================
# LIST ROLES
# ============================================================
@router.get("", response_model=List[Role])
def list_roles(engine: AccessControl = Depends(get_engine)):
    return engine.roles.list_roles()


# ============================================================
# GET ROLE
# ============================================================
@router.get("/{role_id}", response_model=Role)
def get_role(role_id: str, engine: AccessControl = Depends(get_engine)):
    return engine.roles.get_role(role_id)


# ============================================================
# CREATE ROLE
# ============================================================
@router.post("", response_model=Role, status_code=201)
def create_role(payload: RoleCreate, engine: AccessControl = Depends(get_engine)):
    """
    Create a role. Names are unique case-insensitively (409 on collision).
    The permission record is created with full access on first read.
    """
    try:
        return engine.roles.create_role(payload.name, payload.description)
    except ValueError as e:
        raise HTTPException(400, str(e))


# ============================================================
# RENAME ROLE
# ============================================================
@router.patch("/{role_id}", response_model=Role)
def rename_role(
    role_id: str,
    payload: RoleRename,
    engine: AccessControl = Depends(get_engine),
):
    """
    Rename a role and move its permission record to the new name.
    Sessions cached under the old name are dropped and reload on next use.
    """
    old_name = engine.roles.get_role(role_id).name

    try:
        role = engine.roles.rename_role(role_id, payload.name)
    except ValueError as e:
        raise HTTPException(400, str(e))

    engine.cache.invalidate_role(old_name)
    return role


# ============================================================
# DELETE ROLE
# ============================================================
@router.delete("/{role_id}")
def delete_role(role_id: str, engine: AccessControl = Depends(get_engine)):
    role = engine.roles.delete_role(role_id)
    engine.cache.invalidate_role(role.name)
    return {"success": True, "deleted": role.name}
