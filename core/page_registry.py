# core/page_registry.py

"""
Fixed catalog of gate-able pages.

This is the single source of truth for which pages exist. Declaration order
is display order for every navigation renderer. Pages are never created or
deleted at runtime; only their `enabled` flag (see core.page_controls) moves.
"""

from threading import Lock
from typing import Dict, List, Optional

from core.logging_config import logger
from models.enums import MenuSection
from models.page import Page, PageDefinition


SETTINGS_PAGE = "Settings"


# ============================================================
# PAGE CATALOG (declaration order)
# ============================================================
PAGE_CATALOG: List[PageDefinition] = [
    PageDefinition(
        name="Dashboard",
        route="/",
        description="Main dashboard page",
        icon="grid",
        section=MenuSection.main,
        routes=["/"],
    ),
    PageDefinition(
        name="Profile",
        route="/profile",
        description="Own employee profile",
        icon="user",
        section=MenuSection.main,
        routes=["/profile"],
    ),
    PageDefinition(
        name="Documents",
        route="/documents",
        description="Company documents",
        icon="folder",
        section=MenuSection.main,
        routes=["/documents"],
    ),
    PageDefinition(
        name="Staffs",
        route="/staffs",
        description="Staff management pages",
        icon="users",
        section=MenuSection.management,
        routes=["/staffs", "/staffs/create", "/staffs/management", "/staffs/view/:id"],
    ),
    PageDefinition(
        name="Leave",
        route="/leave",
        description="Leave request and management",
        icon="calendar",
        section=MenuSection.management,
        routes=["/leave", "/leave/request", "/leave/status"],
    ),
    PageDefinition(
        name="Requests",
        route="/requests",
        description="Item purchasing and using requests",
        icon="file-text",
        section=MenuSection.management,
        routes=["/requests", "/requests/purchasing", "/requests/using"],
    ),
    PageDefinition(
        name="Complaints",
        route="/complaints",
        description="Complaint registration and resolving",
        icon="alert-circle",
        section=MenuSection.management,
        routes=["/complaints", "/complaints/registration", "/complaints/resolving"],
    ),
    PageDefinition(
        name="Payrolls",
        route="/payrolls",
        description="Payroll settings and calculations",
        icon="dollar-sign",
        section=MenuSection.hr,
        routes=[
            "/payrolls",
            "/payrolls/management",
            "/payrolls/settings",
            "/payrolls/overtime-calculation",
        ],
    ),
    PageDefinition(
        name="Overtime",
        route="/overtime",
        description="Overtime submission",
        icon="clock",
        section=MenuSection.hr,
        routes=["/overtime"],
    ),
    PageDefinition(
        name="Schedules",
        route="/schedules",
        description="Duty time scheduling",
        icon="clock",
        section=MenuSection.management,
        routes=["/schedules"],
    ),
    PageDefinition(
        name=SETTINGS_PAGE,
        route="/settings",
        description="System settings",
        icon="settings",
        section=MenuSection.hr,
        routes=["/settings"],
    ),
]

_CATALOG_BY_NAME: Dict[str, PageDefinition] = {p.name: p for p in PAGE_CATALOG}

# First path segment of every owned route → page name
_SEGMENT_TO_PAGE: Dict[str, str] = {
    route.strip("/").split("/", 1)[0].lower(): p.name
    for p in PAGE_CATALOG
    for route in (p.routes or [p.route])
}


def page_names() -> List[str]:
    """Catalog page names in declaration order."""
    return [p.name for p in PAGE_CATALOG]


def is_known_page(page_name: str) -> bool:
    return page_name in _CATALOG_BY_NAME


def get_page_definition(page_name: str) -> Optional[PageDefinition]:
    return _CATALOG_BY_NAME.get(page_name)


def get_page_name_from_path(path: str) -> Optional[str]:
    """
    Resolve a route path to the page that owns it.

    Matches on the first path segment, so `/staffs/view/42` resolves to
    Staffs and `/` to Dashboard. Returns None for unknown paths.
    """
    if path is None:
        return None

    # Drop query string / fragment
    path = path.split("?", 1)[0].split("#", 1)[0]

    normalized = path.strip().strip("/")
    if not normalized:
        return _SEGMENT_TO_PAGE.get("")

    base_segment = normalized.split("/", 1)[0].lower()
    return _SEGMENT_TO_PAGE.get(base_segment)


# ============================================================
# REGISTRY (catalog + persisted enabled flags)
# ============================================================
class PageRegistry:
    """
    Lists catalog pages with their persisted enabled flag.

    The first call materializes the catalog into the page control store
    (missing rows inserted, duplicate rows removed). Later calls only read.
    """

    def __init__(self, controls):
        self._controls = controls
        self._materialized = False
        self._lock = Lock()

    def _materialize(self):
        with self._lock:
            if self._materialized:
                return
            try:
                self._controls.sync_catalog()
                self._materialized = True
            except Exception as e:
                # Retried on the next call; enabled flags fall back to True
                logger.error(f"Page catalog sync failed: {e}")

    def list_pages(self) -> List[Page]:
        if not self._materialized:
            self._materialize()

        enabled = self._controls.get_enabled_map()

        return [
            Page(
                name=p.name,
                route=p.route,
                description=p.description,
                icon=p.icon,
                enabled=enabled.get(p.name, True),
                section=p.section,
            )
            for p in PAGE_CATALOG
        ]
