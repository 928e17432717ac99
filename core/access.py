# core/access.py

"""
Access decisions for pages.

can_access_page() is the one verdict every consumer uses: sidebar, bottom
navigation and route guards all call it with the same snapshot so they can
never disagree.

Order of evaluation:
  1. Administrators always reach Settings.
  2. A disabled page is unreachable.
  3. Otherwise the page is reachable unless its level is none.

Nothing here raises. Missing data resolves to the fail-open defaults: a page
with no level reads as full, a page with no control row reads as enabled.
"""

from typing import Iterable, List, Optional

from core.logging_config import logger
from core.page_registry import SETTINGS_PAGE
from models.enums import PageCapability, PermissionLevel
from models.page import Page
from models.permission import PageCapabilities, UserPermissionSnapshot


class EnabledMap:
    """Kill-switch state that has already been read from the store."""

    def __init__(self, enabled):
        self._enabled = dict(enabled or {})

    def get_enabled(self, page_name: str) -> bool:
        return self._enabled.get(page_name, True) is not False


def _page_enabled(snapshot: UserPermissionSnapshot, page_name: str, page_controls=None) -> bool:
    if page_controls is not None:
        try:
            return page_controls.get_enabled(page_name) is not False
        except Exception as e:
            logger.warning(f"Kill-switch lookup failed for {page_name}: {e}")
            return True
    return snapshot.page_enabled.get(page_name, True) is not False


def get_permission_level(snapshot: Optional[UserPermissionSnapshot], page_name: str) -> PermissionLevel:
    """
    Stored level for the page. No admin override at this layer: an
    administrator's level on Settings reflects stored data.
    """
    if snapshot is None:
        return PermissionLevel.full
    level = snapshot.pages.get(page_name)
    if level is None:
        return PermissionLevel.full
    try:
        return PermissionLevel(level)
    except ValueError:
        return PermissionLevel.full


def can_access_page(
    snapshot: Optional[UserPermissionSnapshot],
    page_name: str,
    page_controls=None,
) -> bool:
    """
    Whether the snapshot's role may reach `page_name`.

    `page_controls` is anything with get_enabled(page_name); when omitted the
    enabled flags captured in the snapshot are used.
    """
    if snapshot is None:
        return False

    if page_name == SETTINGS_PAGE and snapshot.is_admin:
        return True

    if not _page_enabled(snapshot, page_name, page_controls):
        return False

    return get_permission_level(snapshot, page_name) != PermissionLevel.none


# ============================================================
# CAPABILITY HELPERS
# ============================================================
def can_view_page(snapshot, page_name: str, page_controls=None) -> bool:
    """view, partial or full."""
    return can_access_page(snapshot, page_name, page_controls) and get_permission_level(
        snapshot, page_name
    ) in (PermissionLevel.view, PermissionLevel.partial, PermissionLevel.full)


def can_manage_page(snapshot, page_name: str, page_controls=None) -> bool:
    """Create, edit and delete: full only."""
    return can_access_page(snapshot, page_name, page_controls) and get_permission_level(
        snapshot, page_name
    ) == PermissionLevel.full


def can_submit_own_data(snapshot, page_name: str, page_controls=None) -> bool:
    """Create and submit one's own records: partial or full."""
    return can_access_page(snapshot, page_name, page_controls) and get_permission_level(
        snapshot, page_name
    ) in (PermissionLevel.partial, PermissionLevel.full)


def has_partial_access(snapshot, page_name: str, page_controls=None) -> bool:
    return can_access_page(snapshot, page_name, page_controls) and get_permission_level(
        snapshot, page_name
    ) == PermissionLevel.partial


def can_edit_or_delete(snapshot, page_name: str, page_controls=None) -> bool:
    """Partial holders cannot edit or delete, not even their own submissions."""
    return can_manage_page(snapshot, page_name, page_controls)


def can_approve_or_manage_others(snapshot, page_name: str, page_controls=None) -> bool:
    return can_manage_page(snapshot, page_name, page_controls)


CAPABILITY_CHECKS = {
    PageCapability.access: can_access_page,
    PageCapability.view: can_view_page,
    PageCapability.manage: can_manage_page,
    PageCapability.submit: can_submit_own_data,
    PageCapability.partial: has_partial_access,
    PageCapability.edit_delete: can_edit_or_delete,
    PageCapability.approve: can_approve_or_manage_others,
}


def has_capability(snapshot, page_name: str, capability: PageCapability, page_controls=None) -> bool:
    return CAPABILITY_CHECKS[PageCapability(capability)](snapshot, page_name, page_controls)


def page_capabilities(snapshot, page_name: str, page_controls=None) -> PageCapabilities:
    """Every capability for one page, evaluated against a single kill-switch read."""
    enabled = _page_enabled(snapshot, page_name, page_controls) if snapshot is not None else True
    frozen = EnabledMap({page_name: enabled})

    def check(capability):
        return has_capability(snapshot, page_name, capability, frozen)

    return PageCapabilities(
        page_name=page_name,
        permission=get_permission_level(snapshot, page_name),
        can_access=check(PageCapability.access),
        can_view=check(PageCapability.view),
        can_manage=check(PageCapability.manage),
        can_submit=check(PageCapability.submit),
        is_partial_access=check(PageCapability.partial),
        can_edit_delete=check(PageCapability.edit_delete),
        can_approve=check(PageCapability.approve),
    )


def accessible_pages(
    snapshot: Optional[UserPermissionSnapshot],
    pages: Iterable[Page],
    page_controls=None,
) -> List[Page]:
    """
    Pages the snapshot may reach, in registry order.

    When `page_controls` is omitted the `enabled` flag already on each Page
    is the kill-switch, so one registry read serves the whole list.
    """
    if snapshot is None:
        return []

    pages = list(pages)
    if page_controls is None:
        page_controls = EnabledMap({p.name: p.enabled for p in pages})

    return [p for p in pages if can_access_page(snapshot, p.name, page_controls)]
