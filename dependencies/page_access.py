# dependencies/page_access.py

"""
Route guards built on the snapshot cache.

Every guard resolves the caller's snapshot through the cache and asks the
same access functions the navigation uses. A denied check is a 403 before
the handler runs, so gated content is never partially rendered.
"""

from fastapi import Depends, HTTPException

from core import access
from core.access_control import AccessControl, get_access_control
from core.page_registry import SETTINGS_PAGE
from dependencies.auth import CurrentUser, get_current_user
from models.enums import PageCapability, SessionState
from models.permission import UserPermissionSnapshot


def get_engine() -> AccessControl:
    return get_access_control()


def get_session_snapshot(
    current_user: CurrentUser = Depends(get_current_user),
    engine: AccessControl = Depends(get_engine),
) -> UserPermissionSnapshot:
    """
    Cached snapshot for the caller, signing them in on first sight or when
    their identity role no longer matches the cached one.
    """
    cache = engine.cache
    snapshot = cache.get_snapshot(current_user.id)

    if snapshot is None or snapshot.role != current_user.role:
        if cache.get_state(current_user.id) == SessionState.signed_out:
            snapshot = cache.sign_in(current_user.id, current_user.role)
        else:
            snapshot = cache.refresh(current_user.id, current_user.role)

    if snapshot is None:
        raise HTTPException(403, "Permissions are not available for this session")

    return snapshot


def requires_page(page_name: str):
    """
    Usage:
        @router.get("/leave", dependencies=[Depends(requires_page("Leave"))])
    """

    def dependency(
        snapshot: UserPermissionSnapshot = Depends(get_session_snapshot),
        engine: AccessControl = Depends(get_engine),
    ) -> UserPermissionSnapshot:
        if not access.can_access_page(snapshot, page_name, engine.page_controls):
            raise HTTPException(403, f"Access denied: {page_name}")
        return snapshot

    return dependency


def requires_page_capability(page_name: str, capability: PageCapability):
    """Like requires_page, for a finer capability (manage, submit, approve...)."""

    def dependency(
        snapshot: UserPermissionSnapshot = Depends(get_session_snapshot),
        engine: AccessControl = Depends(get_engine),
    ) -> UserPermissionSnapshot:
        if not access.has_capability(snapshot, page_name, capability, engine.page_controls):
            raise HTTPException(403, f"Access denied: {capability} on {page_name}")
        return snapshot

    return dependency


def requires_settings_admin(
    snapshot: UserPermissionSnapshot = Depends(requires_page(SETTINGS_PAGE)),
    engine: AccessControl = Depends(get_engine),
) -> UserPermissionSnapshot:
    """
    Administration endpoints: Settings must be reachable and the caller must
    be an administrator or hold full on Settings.
    """
    if snapshot.is_admin:
        return snapshot
    if access.can_manage_page(snapshot, SETTINGS_PAGE, engine.page_controls):
        return snapshot
    raise HTTPException(403, "Settings management requires full access")
