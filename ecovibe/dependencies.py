"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from ecovibe.catalog import CatalogCache
from ecovibe.config import get_settings
from ecovibe.db import DbClient, InMemoryDbClient, PostgresDbClient
from ecovibe.sessions import InMemorySessionStore, RedisSessionStore, SessionStore
from ecovibe.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_session_store: SessionStore | None = None
_catalog: CatalogCache | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so records persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.s3_endpoint:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.storage_public_base_url,
        )
    return _storage_client


def get_session_store() -> SessionStore:
    """
    Return a singleton session store shared by the API and the pages.
    """
    global _session_store
    if _session_store:
        return _session_store

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _session_store = RedisSessionStore(
            url=settings.redis_url, ttl_seconds=settings.session_ttl_seconds
        )
    else:
        _session_store = InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)
    return _session_store


def get_catalog() -> CatalogCache:
    """
    Return the catalog cache, loading it from the database on first use.
    """
    global _catalog
    if _catalog:
        return _catalog

    catalog = CatalogCache(get_db_client(), get_storage_client())
    catalog.load()
    _catalog = catalog
    return _catalog


def reset_dependencies() -> None:
    """Drop every singleton so the next request rebuilds them (useful in tests)."""
    global _db_client, _storage_client, _session_store, _catalog
    _db_client = None
    _storage_client = None
    _session_store = None
    _catalog = None
