# core/access_control.py

"""
Process-wide wiring of the page access engine.

One Supabase client feeds every store; the snapshot cache sits on top.
Tests swap the whole set with configure_access_control(client).
"""

from threading import Lock

from core.logging_config import logger
from core.page_controls import PageControlStore
from core.page_registry import PageRegistry
from core.permissions import PermissionMatrixStore
from core.roles import RoleRegistry
from core.snapshot_cache import PermissionSnapshotCache


class AccessControl:
    """Bundle of the stores and the snapshot cache sharing one client."""

    def __init__(self, client=None):
        self.page_controls = PageControlStore(client)
        self.pages = PageRegistry(self.page_controls)
        self.permissions = PermissionMatrixStore(client)
        self.roles = RoleRegistry(self.permissions, client)
        self.cache = PermissionSnapshotCache(self.permissions, self.page_controls, self.pages)

    def reconcile(self):
        """
        Startup self-healing: materialize page controls and drop permission
        records left behind by an interrupted rename or delete.
        """
        self.pages.list_pages()
        removed = self.permissions.reconcile_orphans()
        if removed:
            logger.info(f"Reconciled {len(removed)} orphaned permission record(s)")
        return removed


# Global instance
_access_control = None
_access_control_lock = Lock()


def get_access_control() -> AccessControl:
    """Get the global access control instance."""
    global _access_control
    with _access_control_lock:
        if _access_control is None:
            _access_control = AccessControl()
        return _access_control


def configure_access_control(client=None) -> AccessControl:
    """Replace the global instance, e.g. with one bound to a test client."""
    global _access_control
    with _access_control_lock:
        _access_control = AccessControl(client)
        return _access_control
