# core/navigation.py

"""
Menu building for the sidebar and the mobile bottom navigation.

Both are cut from the same accessible_pages() list, so a page shows up in
one exactly when it shows up in the other and when the route guard lets
the user in.
"""

from typing import List

from core.access import accessible_pages
from models.enums import MenuSection
from models.page import NavItem, NavSection, Navigation, Page


def _nav_item(page: Page) -> NavItem:
    return NavItem(page_name=page.name, path=page.route, label=page.name, icon=page.icon)


def build_sidebar(pages: List[Page]) -> List[NavSection]:
    """Group pages into sidebar sections; empty sections are dropped."""
    sections = []
    for section in MenuSection:
        items = [_nav_item(p) for p in pages if p.section == section]
        if items:
            sections.append(NavSection(title=section, items=items))
    return sections


def build_bottom_nav(pages: List[Page]) -> List[NavItem]:
    return [_nav_item(p) for p in pages]


def build_navigation(snapshot, registry, page_controls=None) -> Navigation:
    """
    Sidebar and bottom navigation for one snapshot.

    `registry` is a PageRegistry; its listing carries the enabled flags, so
    a single store read decides the whole menu.
    """
    visible = accessible_pages(snapshot, registry.list_pages(), page_controls)
    return Navigation(sidebar=build_sidebar(visible), bottom_nav=build_bottom_nav(visible))
