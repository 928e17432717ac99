# models/permission.py

from typing import Dict
from pydantic import BaseModel

from models.enums import PermissionLevel


# -------------------------------------------------
# One record per role, keyed by role name
# -------------------------------------------------
class PermissionRecord(BaseModel):
    role: str
    pages: Dict[str, PermissionLevel] = {}


# -------------------------------------------------
# Admin edits
# -------------------------------------------------
class PermissionLevelUpdate(BaseModel):
    level: PermissionLevel


class PermissionBatchUpdate(BaseModel):
    pages: Dict[str, PermissionLevel]


# -------------------------------------------------
# Derived per-session state (never persisted)
# -------------------------------------------------
class UserPermissionSnapshot(BaseModel):
    """
    Resolved permission state for one authenticated session.

    `page_enabled` is the kill-switch state captured when the snapshot was
    built; callers that hold a PageControlStore read it fresh instead.
    """

    user_id: str = ""
    role: str
    is_admin: bool = False
    pages: Dict[str, PermissionLevel] = {}
    page_enabled: Dict[str, bool] = {}


class PageCapabilities(BaseModel):
    page_name: str
    permission: PermissionLevel
    can_access: bool
    can_view: bool
    can_manage: bool
    can_submit: bool
    is_partial_access: bool
    can_edit_delete: bool
    can_approve: bool
