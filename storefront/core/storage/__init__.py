"""
Record Store
============

Repositories for store records, products and persisted content documents.
"""

from .repository import (
    JSONFileStoreRepository,
    RedisStoreRepository,
    StoreRepository,
    create_store_repository,
    get_store_repository,
)

__all__ = [
    "JSONFileStoreRepository",
    "RedisStoreRepository",
    "StoreRepository",
    "create_store_repository",
    "get_store_repository",
]
