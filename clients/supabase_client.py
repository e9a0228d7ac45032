import logging
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from utils.exceptions import ConfigurationError, StorageError
from utils.repository import Repository, Filters
from utils.settings import Settings

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase(settings: Optional[Settings] = None) -> Client:
    global _supabase_client
    if _supabase_client is None:
        settings = settings or Settings.from_env()
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_KEY must be set",
                missing=["SUPABASE_URL", "SUPABASE_KEY"],
            )
        _supabase_client = create_client(settings.supabase_url, settings.supabase_key)
    return _supabase_client


def _apply_filters(query, filters: Filters):
    for column, value in (filters or {}).items():
        if value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


class SupabaseRepository(Repository):
    """Repository backed by Supabase table queries"""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def select(
        self,
        table: str,
        filters: Filters = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        try:
            query = _apply_filters(self.client.table(table).select("*"), filters)
            if order_by:
                query = query.order(order_by, desc=descending)
            response = query.execute()
            return response.data or []
        except Exception as e:
            logger.error(f"Supabase select on {table} failed: {e}")
            raise StorageError(f"Failed to read {table}", context={"table": table}) from e

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.table(table).insert(row).execute()
        except Exception as e:
            logger.error(f"Supabase insert into {table} failed: {e}")
            raise StorageError(f"Failed to insert into {table}", context={"table": table}) from e
        if not response.data:
            raise StorageError(f"Supabase insert into {table} returned no row", context={"table": table})
        return response.data[0]

    def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        try:
            response = self.client.table(table).insert(rows).execute()
        except Exception as e:
            logger.error(f"Supabase bulk insert into {table} failed: {e}")
            raise StorageError(f"Failed to insert into {table}", context={"table": table}) from e
        return response.data or []

    def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            query = _apply_filters(self.client.table(table).update(values), filters)
            response = query.execute()
            return response.data or []
        except Exception as e:
            logger.error(f"Supabase update on {table} failed: {e}")
            raise StorageError(f"Failed to update {table}", context={"table": table}) from e

    def upsert(self, table: str, row: Dict[str, Any], on_conflict: str = "id") -> Dict[str, Any]:
        try:
            response = self.client.table(table).upsert(row, on_conflict=on_conflict).execute()
        except Exception as e:
            logger.error(f"Supabase upsert into {table} failed: {e}")
            raise StorageError(f"Failed to upsert into {table}", context={"table": table}) from e
        if not response.data:
            raise StorageError(f"Supabase upsert into {table} returned no row", context={"table": table})
        return response.data[0]

    def delete(self, table: str, filters: Filters = None) -> int:
        try:
            query = self.client.table(table).delete()
            if filters:
                query = _apply_filters(query, filters)
            else:
                # PostgREST refuses an unfiltered delete
                query = query.not_.is_("id", "null")
            response = query.execute()
            return len(response.data or [])
        except Exception as e:
            logger.error(f"Supabase delete on {table} failed: {e}")
            raise StorageError(f"Failed to delete from {table}", context={"table": table}) from e
