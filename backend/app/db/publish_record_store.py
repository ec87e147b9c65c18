"""
Publish record store — audit/history rows for publish attempts.

Two implementations, selected by settings.record_store_backend:
- SupabasePublishRecordStore: rows in the app_submissions table
- InMemoryPublishRecordStore: process-local list for local runs and tests
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.clients.supabase_client import SupabaseClient
from app.db.base_store import BaseStore

logger = logging.getLogger("publish_record_store")


class PublishRecordStore(ABC):
    @abstractmethod
    async def record_publish(self, record: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def list_records(self, package_name: Optional[str] = None) -> List[Dict[str, Any]]:
        ...


class SupabasePublishRecordStore(BaseStore, PublishRecordStore):
    def __init__(self, supabase_client: SupabaseClient, table: str = "app_submissions") -> None:
        super().__init__(supabase_client)
        self._table = table

    async def record_publish(self, record: Dict[str, Any]) -> None:
        row = {
            "platform": record.get("platform"),
            "status": record.get("status"),
            "submission_id": record.get("publish_id"),
            "submission_data": {
                "package_name": record.get("package_name"),
                "track": record.get("track"),
                "version_code": record.get("version_code"),
                "edit_id": record.get("edit_id"),
                "source_url": record.get("source_url"),
                "failed_stage": record.get("failed_stage"),
            },
            "status_message": record.get("error") or record.get("message"),
        }
        await self._insert(self._table, [row])
        logger.info(
            "publish record stored table=%s submission_id=%s status=%s",
            self._table,
            row["submission_id"],
            row["status"],
        )

    async def list_records(self, package_name: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = await self._select(self._table)
        if package_name is None:
            return rows
        return [
            r for r in rows
            if (r.get("submission_data") or {}).get("package_name") == package_name
        ]


class InMemoryPublishRecordStore(PublishRecordStore):
    def __init__(self) -> None:
        self._records: List[Dict[str, Any]] = []

    async def record_publish(self, record: Dict[str, Any]) -> None:
        self._records.append(dict(record))

    async def list_records(self, package_name: Optional[str] = None) -> List[Dict[str, Any]]:
        if package_name is None:
            return list(self._records)
        return [r for r in self._records if r.get("package_name") == package_name]
