from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# PERMISSION LEVEL
# -----------------------------------------------------
class PermissionLevel(BaseStrEnum):
    """
    Capability a role holds on a page.

    - full: create, view, edit, delete, approve
    - view: read-only
    - partial: create and submit own records only; no edit/delete/approve
    - none: page hidden and unreachable
    """

    full = "full"
    view = "view"
    partial = "partial"
    none = "none"


# -----------------------------------------------------
# LEGACY STORED VALUES
# -----------------------------------------------------
class LegacyPermissionLevel(BaseStrEnum):
    """Deprecated level names still found in older role_permissions rows."""

    edit = "edit"
    not_access = "not_access"


# -----------------------------------------------------
# PAGE CAPABILITY
# -----------------------------------------------------
class PageCapability(BaseStrEnum):
    """Finer-grained checks a feature page can ask for beyond reachability."""

    access = "access"
    view = "view"
    manage = "manage"
    submit = "submit"
    partial = "partial"
    edit_delete = "edit_delete"
    approve = "approve"


# -----------------------------------------------------
# SESSION STATE
# -----------------------------------------------------
class SessionState(BaseStrEnum):
    """Lifecycle of a cached permission snapshot."""

    unresolved = "unresolved"
    ready = "ready"
    signed_out = "signed_out"


# -----------------------------------------------------
# MENU SECTION
# -----------------------------------------------------
class MenuSection(BaseStrEnum):
    """Sidebar grouping, in display order."""

    main = "Main"
    management = "Management"
    hr = "HR Management"
