"""
Share snapshot stores.

Two implementations of the same small interface:
- SupabaseShareStore: rows in a Supabase table, through the PostgREST API
- InMemoryShareStore: per-process dict, used when Supabase is not configured
  and in tests

Expiry is stored with each record; callers decide what an expired record
means (the share routes answer 410).
"""

import asyncio
import logging
from typing import Dict, Optional, Protocol

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import ShareRecord

logger = logging.getLogger(__name__)


class ShareStoreError(Exception):
    """Raised when the store cannot insert or read a record"""
    pass


class ShareStore(Protocol):
    async def insert(self, record: ShareRecord) -> None:
        ...

    async def get(self, share_id: str) -> Optional[ShareRecord]:
        ...


# ============================================================================
# In-memory store
# ============================================================================

class InMemoryShareStore:
    """
    In-memory share store.

    Thread-safe implementation using asyncio.Lock. Records are lost on
    restart and are not shared between worker processes.
    """

    def __init__(self):
        self._records: Dict[str, ShareRecord] = {}
        self._lock = asyncio.Lock()

    async def insert(self, record: ShareRecord) -> None:
        async with self._lock:
            if record.share_id in self._records:
                raise ShareStoreError(f"Share {record.share_id} already exists")
            self._records[record.share_id] = record
            logger.debug(f"Stored share {record.share_id}, expires at {record.expires_at}")

    async def get(self, share_id: str) -> Optional[ShareRecord]:
        async with self._lock:
            return self._records.get(share_id)


# ============================================================================
# Supabase (PostgREST) store
# ============================================================================

class SupabaseShareStore:
    """
    Share store backed by a Supabase table.

    Expected table columns: share_id (text, unique), thread_id (text),
    thread_data (jsonb), created_at (timestamptz), expires_at (timestamptz).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        supabase_url: str,
        api_key: str,
        table: str = "shared_threads",
        timeout: float = 10.0,
    ):
        self._http_client = http_client
        self._table_url = f"{supabase_url.rstrip('/')}/rest/v1/{table}"
        self._api_key = api_key
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> "SupabaseShareStore":
        return cls(
            http_client,
            settings.supabase_base_url,
            settings.SUPABASE_SERVICE_KEY,
            table=settings.SHARE_TABLE,
            timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def insert(self, record: ShareRecord) -> None:
        headers = self._headers()
        headers["Prefer"] = "return=minimal"

        try:
            response = await self._http_client.post(
                self._table_url,
                json=record.model_dump(mode="json"),
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Supabase rejected share insert: {e.response.status_code}",
                extra={"share_id": record.share_id, "response": e.response.text},
            )
            raise ShareStoreError(f"Insert failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Supabase unreachable during share insert: {e}", extra={"share_id": record.share_id})
            raise ShareStoreError(f"Insert failed: {e}") from e

    async def get(self, share_id: str) -> Optional[ShareRecord]:
        try:
            response = await self._http_client.get(
                self._table_url,
                params={"select": "*", "share_id": f"eq.{share_id}", "limit": "1"},
                headers=self._headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Supabase share lookup failed: {e}", extra={"share_id": share_id})
            raise ShareStoreError(f"Lookup failed: {e}") from e

        if not rows:
            return None

        try:
            return ShareRecord.model_validate(rows[0])
        except ValidationError as e:
            raise ShareStoreError(f"Malformed share row for {share_id}") from e


def create_share_store(settings: Settings, http_client: httpx.AsyncClient) -> ShareStore:
    """Pick the Supabase store when configured, otherwise the in-memory one."""
    if settings.supabase_configured:
        logger.info("Using Supabase share store", extra={"table": settings.SHARE_TABLE})
        return SupabaseShareStore.from_settings(settings, http_client)
    logger.warning("Supabase not configured, using in-memory share store")
    return InMemoryShareStore()
