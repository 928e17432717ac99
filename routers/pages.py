# routers/pages.py

from typing import List

from fastapi import APIRouter, Depends

from core.access_control import AccessControl
from core.logging_config import logger
from dependencies.page_access import (
    get_engine,
    get_session_snapshot,
    requires_settings_admin,
)
from models.page import Page, PageEnabledUpdate

router = APIRouter(
    prefix="/pages",
    tags=["Pages"],
)


# -----------------------------------------------------
# GET /pages
# Full catalog with enabled flags (any signed-in user)
# -----------------------------------------------------
@router.get(
    "",
    response_model=List[Page],
    dependencies=[Depends(get_session_snapshot)],
)
def list_pages(engine: AccessControl = Depends(get_engine)):
    return engine.pages.list_pages()


# -----------------------------------------------------
# PATCH /pages/{page_name}
# Global kill-switch toggle
# -----------------------------------------------------
@router.patch(
    "/{page_name}",
    response_model=Page,
    dependencies=[Depends(requires_settings_admin)],
)
def set_page_enabled(
    page_name: str,
    payload: PageEnabledUpdate,
    engine: AccessControl = Depends(get_engine),
):
    """
    Enable or disable a page for every role.

    Takes effect on the next permission check; cached sessions read the
    kill-switch fresh, so no refresh is needed.
    """
    engine.page_controls.set_enabled(page_name, payload.enabled)
    logger.info(f"Page control change via API: {page_name} → {payload.enabled}")

    return next(p for p in engine.pages.list_pages() if p.name == page_name)
