# routers/me.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core import access
from core.access_control import AccessControl
from core.page_registry import get_page_name_from_path, is_known_page
from dependencies.auth import CurrentUser, get_current_user
from dependencies.page_access import get_engine, get_session_snapshot
from models.page import Navigation
from models.permission import PageCapabilities, UserPermissionSnapshot

router = APIRouter(
    prefix="/me",
    tags=["Current Session"],
)


# -----------------------------------------------------
# GET /me/permissions: the cached snapshot
# -----------------------------------------------------
@router.get("/permissions", response_model=UserPermissionSnapshot)
def my_permissions(snapshot: UserPermissionSnapshot = Depends(get_session_snapshot)):
    return snapshot


# -----------------------------------------------------
# GET /me/navigation: sidebar + bottom nav
# -----------------------------------------------------
@router.get("/navigation", response_model=Navigation)
def my_navigation(
    current_user: CurrentUser = Depends(get_current_user),
    snapshot: UserPermissionSnapshot = Depends(get_session_snapshot),
    engine: AccessControl = Depends(get_engine),
):
    """
    Both menus come from the same filtered page list as the route guard,
    so they always agree with it and with each other.
    """
    return engine.cache.navigation(current_user.id)


# -----------------------------------------------------
# GET /me/access?path=/staffs/create: route guard by path
# -----------------------------------------------------
@router.get("/access")
def check_path(
    path: str = Query(..., description="Route path being navigated to"),
    current_user: CurrentUser = Depends(get_current_user),
    snapshot: UserPermissionSnapshot = Depends(get_session_snapshot),
    engine: AccessControl = Depends(get_engine),
):
    page_name: Optional[str] = get_page_name_from_path(path)
    if page_name is None:
        # Paths outside the catalog are not gated here
        return {"path": path, "page_name": None, "allowed": True}

    return {
        "path": path,
        "page_name": page_name,
        "allowed": engine.cache.can_access_page(current_user.id, page_name),
    }


# -----------------------------------------------------
# GET /me/access/{page_name}: route guard by page
# -----------------------------------------------------
@router.get("/access/{page_name}")
def check_page(
    page_name: str,
    current_user: CurrentUser = Depends(get_current_user),
    snapshot: UserPermissionSnapshot = Depends(get_session_snapshot),
    engine: AccessControl = Depends(get_engine),
):
    if not is_known_page(page_name):
        raise HTTPException(404, f"Page '{page_name}' not found")

    return {
        "page_name": page_name,
        "allowed": engine.cache.can_access_page(current_user.id, page_name),
    }


# -----------------------------------------------------
# GET /me/capabilities/{page_name}
# -----------------------------------------------------
@router.get("/capabilities/{page_name}", response_model=PageCapabilities)
def my_capabilities(
    page_name: str,
    snapshot: UserPermissionSnapshot = Depends(get_session_snapshot),
    engine: AccessControl = Depends(get_engine),
):
    if not is_known_page(page_name):
        raise HTTPException(404, f"Page '{page_name}' not found")
    return access.page_capabilities(snapshot, page_name, engine.page_controls)


# -----------------------------------------------------
# POST /me/refresh: reload after an admin edit
# -----------------------------------------------------
@router.post("/refresh", response_model=UserPermissionSnapshot)
def refresh(
    current_user: CurrentUser = Depends(get_current_user),
    engine: AccessControl = Depends(get_engine),
):
    snapshot = engine.cache.sign_in(current_user.id, current_user.role)
    if snapshot is None:
        raise HTTPException(503, "Permissions could not be loaded")
    return snapshot


# -----------------------------------------------------
# POST /me/sign-out: drop the cached snapshot
# -----------------------------------------------------
@router.post("/sign-out")
def sign_out(
    current_user: CurrentUser = Depends(get_current_user),
    engine: AccessControl = Depends(get_engine),
):
    engine.cache.sign_out(current_user.id)
    return {"success": True}
