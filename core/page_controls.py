# core/page_controls.py

"""
Persisted enable/disable flag per page.

A disabled page is unreachable for every role, administrators included
(except the Settings override in core.access). Nothing here is cached:
every read goes to the store so a toggle is seen by the next check.
"""

from datetime import datetime, timezone
from typing import Dict, List

from core.config import settings
from core.errors import NotFoundError, store_write_error
from core.logging_config import logger
from core.page_registry import PAGE_CATALOG, get_page_definition, is_known_page
from core.supabase_client import get_supabase_client


class PageControlStore:

    def __init__(self, client=None, table: str = None):
        self._client = client
        self.table = table or settings.PAGE_CONTROLS_TABLE

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    # --------------------------------------------------------
    # Reads (fail-open)
    # --------------------------------------------------------
    def _rows(self) -> List[dict]:
        result = (
            self.client.table(self.table)
            .select("id, page_name, enabled")
            .order("id")
            .execute()
        )
        return result.data or []

    def get_enabled_map(self) -> Dict[str, bool]:
        """
        page_name → enabled for every persisted row.
        Unknown pages are absent and read as enabled.
        """
        try:
            rows = self._rows()
        except Exception as e:
            logger.warning(f"Page controls unavailable, treating all pages as enabled: {e}")
            return {}

        enabled = {}
        for row in rows:
            name = row.get("page_name")
            # First row wins; duplicates are removed by sync_catalog()
            if name and name not in enabled:
                enabled[name] = row.get("enabled") is not False
        return enabled

    def get_enabled(self, page_name: str) -> bool:
        try:
            rows = (
                self.client.table(self.table)
                .select("id, enabled")
                .eq("page_name", page_name)
                .order("id")
                .limit(1)
                .execute()
            ).data
        except Exception as e:
            logger.warning(f"Page control lookup failed for {page_name}: {e}")
            return True

        if not rows:
            return True
        return rows[0].get("enabled") is not False

    # --------------------------------------------------------
    # Writes
    # --------------------------------------------------------
    def set_enabled(self, page_name: str, value: bool):
        if not is_known_page(page_name):
            raise NotFoundError("Page", page_name)

        now = datetime.now(timezone.utc).isoformat()

        try:
            updated = (
                self.client.table(self.table)
                .update({"enabled": bool(value), "updated_at": now})
                .eq("page_name", page_name)
                .execute()
            ).data

            if not updated:
                row = self._catalog_row(page_name)
                row["enabled"] = bool(value)
                row["updated_at"] = now
                self.client.table(self.table).insert(row).execute()

        except Exception as e:
            raise store_write_error(e, f"Failed to update page control {page_name}")

        logger.info(f"Page '{page_name}' {'enabled' if value else 'disabled'}")

    def sync_catalog(self) -> Dict[str, bool]:
        """
        Bring the store in line with the catalog.

        - Catalog pages with no row are inserted with enabled = True.
        - Extra rows repeating an already-seen page_name are deleted.
        Returns the resulting page_name → enabled map.
        """
        rows = self._rows()

        seen: Dict[str, bool] = {}
        duplicates = []
        for row in rows:
            name = row.get("page_name")
            if not name:
                continue
            if name in seen:
                duplicates.append(row)
                continue
            seen[name] = row.get("enabled") is not False

        for row in duplicates:
            logger.warning(
                f"Removing duplicate page control row {row.get('id')} for {row.get('page_name')}"
            )
            self.client.table(self.table).delete().eq("id", row["id"]).execute()

        for page in PAGE_CATALOG:
            if page.name in seen:
                continue
            logger.info(f"Registering page control for {page.name}")
            self.client.table(self.table).insert(self._catalog_row(page.name)).execute()
            seen[page.name] = True

        return seen

    @staticmethod
    def _catalog_row(page_name: str) -> dict:
        page = get_page_definition(page_name)
        return {
            "page_name": page.name,
            "enabled": True,
            "description": page.description,
            "route": page.route,
            "icon": page.icon,
        }
