"""
Base store — shared Supabase client access for all stores.

Domain-specific stores inherit from this class to get standardised
insert / select primitives.
"""

import logging
from typing import Any, Dict, List

from postgrest.exceptions import APIError

from app.clients.supabase_client import SupabaseClient
from app.core.exceptions import InternalError

logger = logging.getLogger("base_store")


class BaseStore:
    """Base class for Supabase stores providing shared CRUD operations."""

    def __init__(self, supabase_client: SupabaseClient) -> None:
        self._supabase_client = supabase_client

    @property
    def _client(self):
        """Get the Supabase client instance."""
        return self._supabase_client.client

    async def _insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        """Insert rows into a table."""
        if not rows:
            return
        try:
            self._client.table(table).insert(rows).execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise InternalError(f"Supabase insert into {table} failed: {e}")

    async def _select(
        self, table: str, columns: str = "*", filters: Dict[str, Any] | None = None
    ) -> List[Dict[str, Any]]:
        """Select rows from a table with optional filters."""
        try:
            query = self._client.table(table).select(columns)
            if filters:
                for key, value in filters.items():
                    query = query.eq(key, value)
            response = query.execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise InternalError(f"Supabase select from {table} failed: {e}")
