# core/roles.py

"""
Role registry: named groups of users sharing one permission record.

Role names are case-preserving but unique case-insensitively. The name is
the key of the role's permission record, so rename and delete cascade into
the permission matrix.
"""

from datetime import datetime, timezone
from threading import Lock
from typing import List, Optional

from core.config import settings
from core.errors import (
    DuplicateRoleError,
    NotFoundError,
    extract_supabase_error,
    store_write_error,
)
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.role import Role


# Built-in administrator names, compared case-insensitively
ADMIN_ROLE_NAMES = ("admin", "administrator")


def is_admin_role(role: Optional[str]) -> bool:
    if not role:
        return False
    return role.strip().lower() in ADMIN_ROLE_NAMES


def _is_unique_violation(error: Exception) -> bool:
    detail = extract_supabase_error(error).lower()
    return "duplicate" in detail or "unique" in detail


class RoleRegistry:

    def __init__(self, permission_store, client=None, table: str = None):
        self.permissions = permission_store
        self._client = client
        self.table = table or settings.ROLES_TABLE

        # Name check and write happen as one step within the process; across
        # processes a unique index on lower(name) backs it up
        self._names_lock = Lock()

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    # --------------------------------------------------------
    # Reads
    # --------------------------------------------------------
    def list_roles(self) -> List[Role]:
        rows = (
            self.client.table(self.table)
            .select("*")
            .order("name")
            .execute()
        ).data or []
        return [Role(**row) for row in rows]

    def get_role(self, role_id: str) -> Role:
        rows = (
            self.client.table(self.table)
            .select("*")
            .eq("id", role_id)
            .limit(1)
            .execute()
        ).data
        if not rows:
            raise NotFoundError("Role", role_id)
        return Role(**rows[0])

    def _find_by_name(self, name: str) -> Optional[dict]:
        """Case-insensitive lookup by name."""
        wanted = name.strip().lower()
        rows = self.client.table(self.table).select("id, name").execute().data or []
        return next((r for r in rows if (r.get("name") or "").lower() == wanted), None)

    # --------------------------------------------------------
    # Writes
    # --------------------------------------------------------
    def create_role(self, name: str, description: str = "") -> Role:
        name = (name or "").strip()
        if not name:
            raise ValueError("Role name is required")

        with self._names_lock:
            if self._find_by_name(name):
                raise DuplicateRoleError(name)

            try:
                result = (
                    self.client.table(self.table)
                    .insert({
                        "name": name,
                        "description": description or "",
                        "created_at": datetime.now(timezone.utc).isoformat(),
                    })
                    .execute()
                )
            except Exception as e:
                if _is_unique_violation(e):
                    raise DuplicateRoleError(name)
                raise store_write_error(e, f"Failed to create role {name}")

        if not result.data:
            raise store_write_error(RuntimeError("no row returned"), f"Failed to create role {name}")

        logger.info(f"Created role {name}")
        return Role(**result.data[0])

    def rename_role(self, role_id: str, new_name: str) -> Role:
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValueError("Role name is required")

        with self._names_lock:
            role = self.get_role(role_id)
            old_name = role.name

            clash = self._find_by_name(new_name)
            if clash and str(clash["id"]) != role.id:
                raise DuplicateRoleError(new_name)

            if new_name == old_name:
                return role

            try:
                (
                    self.client.table(self.table)
                    .update({"name": new_name})
                    .eq("id", role_id)
                    .execute()
                )
            except Exception as e:
                if _is_unique_violation(e):
                    raise DuplicateRoleError(new_name)
                raise store_write_error(e, f"Failed to rename role {old_name}")

            try:
                self.permissions.rename_record(old_name, new_name)
            except Exception:
                # Put the role back so its name and record key stay in step
                logger.error(f"Permission migration failed; reverting rename {old_name} → {new_name}")
                try:
                    self.client.table(self.table).update({"name": old_name}).eq("id", role_id).execute()
                except Exception as revert_error:
                    logger.error(
                        f"Could not revert role {role_id} to {old_name}: "
                        f"{extract_supabase_error(revert_error)}"
                    )
                raise

        logger.info(f"Renamed role {old_name} → {new_name}")
        return role.model_copy(update={"name": new_name})

    def delete_role(self, role_id: str):
        role = self.get_role(role_id)

        # Record first: a role left without a record reads as full access
        # and a retry finds the record already gone, never a stale one.
        self.permissions.delete_record(role.name)

        try:
            self.client.table(self.table).delete().eq("id", role_id).execute()
        except Exception as e:
            raise store_write_error(e, f"Failed to delete role {role.name}")

        logger.info(f"Deleted role {role.name}")
        return role
