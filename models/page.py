# models/page.py

from typing import List, Optional
from pydantic import BaseModel

from models.enums import MenuSection


# -------------------------------------------------
# Catalog entry (static, never persisted as-is)
# -------------------------------------------------
class PageDefinition(BaseModel):
    name: str
    route: str
    description: str
    icon: str
    section: MenuSection

    # Every route path this page owns; the first is the landing route
    routes: List[str] = []


# -------------------------------------------------
# Read (catalog + persisted enabled flag)
# -------------------------------------------------
class Page(BaseModel):
    name: str
    route: str
    description: str
    icon: str
    enabled: bool = True
    section: Optional[MenuSection] = None


# -------------------------------------------------
# Update (PATCH): enabled is the only mutable field
# -------------------------------------------------
class PageEnabledUpdate(BaseModel):
    enabled: bool


# -------------------------------------------------
# Navigation payloads
# -------------------------------------------------
class NavItem(BaseModel):
    page_name: str
    path: str
    label: str
    icon: str


class NavSection(BaseModel):
    title: MenuSection
    items: List[NavItem] = []


class Navigation(BaseModel):
    sidebar: List[NavSection] = []
    bottom_nav: List[NavItem] = []
