# core/permissions.py

"""
Per-role permission matrix: one record per role, pageName → PermissionLevel.

Stored values come in several generations:
  • booleans           true → full, false → none
  • deprecated names   "edit" → full, "not_access" → none
  • current levels     full / view / partial / none
Every read normalizes to the current levels over the full page catalog and
writes the normalized map back when anything changed. Missing pages read as
full (fail-open).

Writes are serialized per role inside the process and guarded across
processes by a version column (compare-and-swap with bounded retries).
"""

from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.config import settings
from core.errors import NotFoundError, StoreWriteError, store_write_error
from core.logging_config import logger
from core.page_registry import is_known_page, page_names as catalog_page_names
from core.supabase_client import get_supabase_client
from models.enums import LegacyPermissionLevel, PermissionLevel
from models.permission import PermissionRecord


# ============================================================
# NORMALIZATION
# ============================================================
LEGACY_LEVELS: Dict[str, PermissionLevel] = {
    LegacyPermissionLevel.edit.value: PermissionLevel.full,
    LegacyPermissionLevel.not_access.value: PermissionLevel.none,
}


def normalize_level(raw: Any) -> PermissionLevel:
    """
    Map any stored representation to a current PermissionLevel.
    Total and idempotent: normalize_level(normalize_level(v)) == normalize_level(v).
    """
    if raw is None:
        return PermissionLevel.full

    # bool before str: the enum is a str subclass, bool is not
    if isinstance(raw, bool):
        return PermissionLevel.full if raw else PermissionLevel.none

    if isinstance(raw, PermissionLevel):
        return raw

    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in LEGACY_LEVELS:
            return LEGACY_LEVELS[value]
        try:
            return PermissionLevel(value)
        except ValueError:
            pass

    logger.warning(f"Unrecognized stored permission value {raw!r}, treating as full")
    return PermissionLevel.full


def serialize_pages(pages: Dict[str, PermissionLevel]) -> Dict[str, str]:
    return {name: PermissionLevel(level).value for name, level in pages.items()}


def normalize_pages(
    raw_pages: Optional[Dict[str, Any]],
    names: Iterable[str],
) -> Tuple[Dict[str, PermissionLevel], bool]:
    """
    Normalize a stored pages map over the given page names.

    Returns (normalized, changed). `changed` is True when the stored map
    differs from its normalized form and should be written back.
    """
    if not isinstance(raw_pages, dict):
        raw_pages = {}

    normalized = {name: normalize_level(raw_pages.get(name)) for name in names}

    changed = serialize_pages(normalized) != raw_pages
    return normalized, changed


def full_access_pages(names: Iterable[str]) -> Dict[str, PermissionLevel]:
    return {name: PermissionLevel.full for name in names}


# ============================================================
# STORE
# ============================================================
class PermissionMatrixStore:

    def __init__(
        self,
        client=None,
        table: str = None,
        roles_table: str = None,
        page_names: Callable[[], List[str]] = catalog_page_names,
        max_retries: int = None,
    ):
        self._client = client
        self.table = table or settings.ROLE_PERMISSIONS_TABLE
        self.roles_table = roles_table or settings.ROLES_TABLE
        self.page_names = page_names
        self.max_retries = max_retries or settings.PERMISSION_WRITE_RETRIES

        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _role_lock(self, role: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(role)
            if lock is None:
                lock = self._locks[role] = Lock()
            return lock

    # --------------------------------------------------------
    # Raw access
    # --------------------------------------------------------
    def _fetch(self, role: str) -> Optional[dict]:
        rows = (
            self.client.table(self.table)
            .select("role, pages, version")
            .eq("role", role)
            .limit(1)
            .execute()
        ).data
        return rows[0] if rows else None

    def _insert(self, role: str, pages: Dict[str, PermissionLevel]):
        self.client.table(self.table).insert({
            "role": role,
            "pages": serialize_pages(pages),
            "version": 1,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).execute()

    def _compare_and_swap(
        self,
        role: str,
        expected_version: Optional[int],
        pages: Dict[str, PermissionLevel],
    ) -> bool:
        """Write `pages` only if the stored version is still `expected_version`."""
        query = (
            self.client.table(self.table)
            .update({
                "pages": serialize_pages(pages),
                "version": (expected_version or 0) + 1,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })
            .eq("role", role)
        )
        if expected_version is None:
            query = query.is_("version", "null")
        else:
            query = query.eq("version", expected_version)

        return bool(query.execute().data)

    def _role_exists(self, role: str) -> bool:
        rows = (
            self.client.table(self.roles_table)
            .select("id")
            .eq("name", role)
            .limit(1)
            .execute()
        ).data
        return bool(rows)

    # --------------------------------------------------------
    # Reads
    # --------------------------------------------------------
    def get_record(self, role: str) -> PermissionRecord:
        """
        Normalized record for `role`.

        Legacy values are migrated and written back. A role with no record
        gets one with every page set to full, persisted on the spot.
        """
        names = self.page_names()

        try:
            row = self._fetch(role)
        except Exception as e:
            logger.error(f"Permission record lookup failed for {role}, using full access: {e}")
            return PermissionRecord(role=role, pages=full_access_pages(names))

        if row is None:
            pages = full_access_pages(names)
            try:
                # Only registered roles get a stored record; anything else
                # would be an orphan for reconcile_orphans()
                if self._role_exists(role):
                    self._insert(role, pages)
                    logger.info(f"Created default permission record for role {role}")
            except Exception as e:
                # Usually a concurrent reader created it first
                logger.warning(f"Could not persist default permissions for {role}: {e}")
            return PermissionRecord(role=role, pages=pages)

        pages, changed = normalize_pages(row.get("pages"), names)

        if changed:
            try:
                if self._compare_and_swap(role, row.get("version"), pages):
                    logger.info(f"Migrated stored permissions for role {role}")
            except Exception as e:
                logger.warning(f"Could not write back normalized permissions for {role}: {e}")

        return PermissionRecord(role=role, pages=pages)

    def list_records(self) -> List[PermissionRecord]:
        rows = (
            self.client.table(self.table)
            .select("role, pages")
            .order("role")
            .execute()
        ).data or []

        names = self.page_names()
        return [
            PermissionRecord(role=row["role"], pages=normalize_pages(row.get("pages"), names)[0])
            for row in rows
        ]

    # --------------------------------------------------------
    # Writes
    # --------------------------------------------------------
    def set_level(self, role: str, page_name: str, level) -> PermissionRecord:
        return self.set_levels(role, {page_name: level})

    def set_levels(self, role: str, updates: Dict[str, Any]) -> PermissionRecord:
        """
        Overwrite the given pages' levels for `role` and persist the full map.

        Raises NotFoundError for an unknown page or unregistered role,
        ValueError for an invalid level and StoreWriteError when the store
        rejects the write or keeps changing underneath it.
        """
        for page_name in updates:
            if not is_known_page(page_name):
                raise NotFoundError("Page", page_name)

        levels = {name: PermissionLevel(level) for name, level in updates.items()}
        names = self.page_names()

        try:
            role_exists = self._role_exists(role)
        except Exception as e:
            raise store_write_error(e, f"Failed to look up role {role}")
        if not role_exists:
            raise NotFoundError("Role", role)

        with self._role_lock(role):
            for attempt in range(1, self.max_retries + 1):
                try:
                    row = self._fetch(role)

                    if row is None:
                        pages = full_access_pages(names)
                        pages.update(levels)
                        self._insert(role, pages)
                        return PermissionRecord(role=role, pages=pages)

                    pages, _ = normalize_pages(row.get("pages"), names)
                    pages.update(levels)

                    if self._compare_and_swap(role, row.get("version"), pages):
                        return PermissionRecord(role=role, pages=pages)

                except Exception as e:
                    if attempt == self.max_retries:
                        raise store_write_error(e, f"Failed to update permissions for {role}")
                    logger.warning(f"Permission write for {role} failed (attempt {attempt}): {e}")
                    continue

                logger.info(f"Concurrent update on permissions for {role}, retrying (attempt {attempt})")

        raise StoreWriteError(
            f"Permissions for role {role} kept changing; gave up after {self.max_retries} attempts"
        )

    def rename_record(self, old_role: str, new_role: str):
        """
        Move the record stored under `old_role` to `new_role`.

        Two store operations: write under the new key, then delete the old
        one. If the delete is lost the old row is an orphan and is removed by
        reconcile_orphans().
        """
        if old_role == new_role:
            return

        first, second = sorted([old_role, new_role])
        with self._role_lock(first), self._role_lock(second):
            try:
                row = self._fetch(old_role)
            except Exception as e:
                raise store_write_error(e, f"Failed to read permissions for {old_role}")

            if row is None:
                logger.info(f"No permission record to migrate for role {old_role}")
                return

            pages, _ = normalize_pages(row.get("pages"), self.page_names())

            try:
                self.client.table(self.table).upsert(
                    {
                        "role": new_role,
                        "pages": serialize_pages(pages),
                        "version": 1,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    },
                    on_conflict="role",
                ).execute()
            except Exception as e:
                raise store_write_error(e, f"Failed to migrate permissions to {new_role}")

            try:
                self.client.table(self.table).delete().eq("role", old_role).execute()
            except Exception as e:
                logger.error(
                    f"Permissions copied to {new_role} but {old_role} was not removed; "
                    f"left for orphan reconciliation: {e}"
                )
                return

        logger.info(f"Migrated permission record {old_role} → {new_role}")

    def delete_record(self, role: str) -> bool:
        """Delete the record for `role`. Returns False if there was none."""
        with self._role_lock(role):
            try:
                deleted = (
                    self.client.table(self.table)
                    .delete()
                    .eq("role", role)
                    .execute()
                ).data
            except Exception as e:
                raise store_write_error(e, f"Failed to delete permissions for {role}")

        with self._locks_guard:
            self._locks.pop(role, None)

        if not deleted:
            logger.info(f"No permission record for role {role}; nothing to delete")
            return False

        logger.info(f"Deleted permission record for role {role}")
        return True

    def reconcile_orphans(self) -> List[str]:
        """
        Delete permission records whose role no longer exists.
        Returns the removed role keys.
        """
        try:
            role_rows = self.client.table(self.roles_table).select("name").execute().data or []
            record_rows = self.client.table(self.table).select("role").execute().data or []
        except Exception as e:
            logger.warning(f"Orphan reconciliation skipped: {e}")
            return []

        known = {row.get("name") for row in role_rows}
        orphans = [row["role"] for row in record_rows if row.get("role") not in known]

        removed = []
        for role in orphans:
            try:
                if self.delete_record(role):
                    removed.append(role)
            except StoreWriteError:
                continue

        if removed:
            logger.warning(f"Removed orphaned permission records: {', '.join(removed)}")
        return removed
