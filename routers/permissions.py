# routers/permissions.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from core.access_control import AccessControl
from core.logging_config import logger
from dependencies.page_access import get_engine, requires_settings_admin
from models.enums import PermissionLevel
from models.permission import (
    PermissionBatchUpdate,
    PermissionLevelUpdate,
    PermissionRecord,
)

router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
    dependencies=[Depends(requires_settings_admin)],
)


# -----------------------------------------------------
# GET /permissions/levels: values for UI dropdowns
# -----------------------------------------------------
@router.get("/levels", response_model=List[str])
def list_levels():
    return PermissionLevel.list()


# -----------------------------------------------------
# GET /permissions: every stored record, normalized
# -----------------------------------------------------
@router.get("", response_model=List[PermissionRecord])
def list_records(engine: AccessControl = Depends(get_engine)):
    return engine.permissions.list_records()


# -----------------------------------------------------
# GET /permissions/{role}
# -----------------------------------------------------
@router.get("/{role}", response_model=PermissionRecord)
def get_record(role: str, engine: AccessControl = Depends(get_engine)):
    return engine.permissions.get_record(role)


# -----------------------------------------------------
# PUT /permissions/{role}/pages/{page_name}
# -----------------------------------------------------
@router.put("/{role}/pages/{page_name}", response_model=PermissionRecord)
def set_level(
    role: str,
    page_name: str,
    payload: PermissionLevelUpdate,
    engine: AccessControl = Depends(get_engine),
):
    record = engine.permissions.set_level(role, page_name, payload.level)
    engine.cache.refresh_role(role)
    return record


# -----------------------------------------------------
# PUT /permissions/{role}: several pages in one write
# -----------------------------------------------------
@router.put("/{role}", response_model=PermissionRecord)
def set_levels(
    role: str,
    payload: PermissionBatchUpdate,
    engine: AccessControl = Depends(get_engine),
):
    if not payload.pages:
        raise HTTPException(400, "No page levels supplied")

    record = engine.permissions.set_levels(role, payload.pages)
    engine.cache.refresh_role(role)
    return record


# -----------------------------------------------------
# POST /permissions/reconcile: drop orphaned records
# -----------------------------------------------------
@router.post("/reconcile")
def reconcile(engine: AccessControl = Depends(get_engine)):
    removed = engine.permissions.reconcile_orphans()
    logger.info(f"Manual reconciliation removed {len(removed)} record(s)")
    return {"removed": removed}
