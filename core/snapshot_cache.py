# core/snapshot_cache.py

"""
Per-session cache of resolved permission snapshots.

A session moves through:
    unresolved  authentication seen, snapshot still loading
    ready       snapshot loaded (or failed to load, leaving none)
and disappears on sign-out.

While a session is unresolved or unknown every access check is False. This
deny-while-loading rule lives here, not in core.access, so restricted
content never flashes before permissions are known.

Snapshots are swapped in whole under a lock; readers never see a half-built
one. Kill-switch flags are not cached: checks go through the page control
store each time.
"""

from threading import Lock
from typing import Dict, List, Optional

from core import access
from core.logging_config import logger
from core.navigation import build_navigation
from core.roles import is_admin_role
from models.enums import SessionState
from models.page import Navigation
from models.permission import UserPermissionSnapshot


class SessionEntry:
    """Cached state for one authenticated user."""

    def __init__(self, state: SessionState, generation: int, snapshot: UserPermissionSnapshot = None):
        self.state = state
        self.generation = generation
        self.snapshot = snapshot


class PermissionSnapshotCache:

    def __init__(self, permission_store, page_controls, registry=None):
        self.permissions = permission_store
        self.page_controls = page_controls
        self.registry = registry

        self._sessions: Dict[str, SessionEntry] = {}
        self._generation = 0
        self._lock = Lock()

    # --------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------
    def begin_authentication(self, user_id: str) -> int:
        """Mark the session as loading. Returns the load generation."""
        with self._lock:
            self._generation += 1
            self._sessions[user_id] = SessionEntry(SessionState.unresolved, self._generation)
            return self._generation

    def build_snapshot(self, user_id: str, role: str) -> UserPermissionSnapshot:
        record = self.permissions.get_record(role)
        return UserPermissionSnapshot(
            user_id=user_id,
            role=role,
            is_admin=is_admin_role(role),
            pages=record.pages,
            page_enabled=self.page_controls.get_enabled_map(),
        )

    def sign_in(self, user_id: str, role: str) -> Optional[UserPermissionSnapshot]:
        """
        Load and cache the snapshot for an authentication event.

        A failed load leaves the session ready with no snapshot, so every
        check for it is denied until the next refresh.
        """
        generation = self.begin_authentication(user_id)
        return self._load(user_id, role, generation)

    def _load(self, user_id: str, role: str, generation: int) -> Optional[UserPermissionSnapshot]:
        try:
            snapshot = self.build_snapshot(user_id, role)
        except Exception as e:
            logger.error(f"Error loading permissions for user {user_id}: {e}")
            snapshot = None

        with self._lock:
            entry = self._sessions.get(user_id)
            # Signed out, or a newer load started, while this one ran
            if entry is None or entry.generation != generation:
                return None
            self._sessions[user_id] = SessionEntry(SessionState.ready, generation, snapshot)

        return snapshot

    def refresh(self, user_id: str, role: str = None) -> Optional[UserPermissionSnapshot]:
        """
        Rebuild a session's snapshot. The current one stays readable until
        the new one is swapped in.
        """
        with self._lock:
            entry = self._sessions.get(user_id)
            if entry is None:
                return None
            if role is None:
                if entry.snapshot is None:
                    return None
                role = entry.snapshot.role
            self._generation += 1
            entry.generation = self._generation
            generation = entry.generation

        return self._load(user_id, role, generation)

    def refresh_role(self, role: str) -> int:
        """Refresh every session holding `role`. Returns how many were refreshed."""
        user_ids = self._user_ids_for_role(role)
        for user_id in user_ids:
            self.refresh(user_id)
        if user_ids:
            logger.info(f"Refreshed {len(user_ids)} cached session(s) for role {role}")
        return len(user_ids)

    def invalidate_role(self, role: str) -> int:
        """
        Drop every session holding `role`; they load again on next use.
        Used when the role itself is renamed or deleted.
        """
        with self._lock:
            user_ids = [
                uid for uid, entry in self._sessions.items()
                if entry.snapshot is not None and entry.snapshot.role == role
            ]
            for uid in user_ids:
                del self._sessions[uid]
        return len(user_ids)

    def sign_out(self, user_id: str):
        with self._lock:
            self._sessions.pop(user_id, None)

    def clear(self):
        with self._lock:
            self._sessions.clear()

    # --------------------------------------------------------
    # Reads
    # --------------------------------------------------------
    def _user_ids_for_role(self, role: str) -> List[str]:
        with self._lock:
            return [
                uid for uid, entry in self._sessions.items()
                if entry.snapshot is not None and entry.snapshot.role == role
            ]

    def get_state(self, user_id: str) -> SessionState:
        with self._lock:
            entry = self._sessions.get(user_id)
            return entry.state if entry else SessionState.signed_out

    def get_snapshot(self, user_id: str) -> Optional[UserPermissionSnapshot]:
        """The ready snapshot for the session, or None while loading / signed out."""
        with self._lock:
            entry = self._sessions.get(user_id)
            if entry is None or entry.state != SessionState.ready:
                return None
            return entry.snapshot

    def can_access_page(self, user_id: str, page_name: str) -> bool:
        snapshot = self.get_snapshot(user_id)
        if snapshot is None:
            return False
        return access.can_access_page(snapshot, page_name, self.page_controls)

    def navigation(self, user_id: str) -> Navigation:
        snapshot = self.get_snapshot(user_id)
        if snapshot is None or self.registry is None:
            return Navigation()
        return build_navigation(snapshot, self.registry)

    def size(self) -> int:
        with self._lock:
            return len(self._sessions)
