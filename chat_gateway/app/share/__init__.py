"""
Share Package

Thread snapshot sharing: a signed-in user snapshots a thread, anyone with
the share link can read the snapshot until it expires.

Modules:
- routes: POST/GET /api/share
- store: Supabase (PostgREST) and in-memory snapshot stores
"""

from .routes import share_router
from .store import InMemoryShareStore, ShareStoreError, SupabaseShareStore, create_share_store

__all__ = [
    "share_router",
    "create_share_store",
    "InMemoryShareStore",
    "SupabaseShareStore",
    "ShareStoreError",
]
