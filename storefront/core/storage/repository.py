"""
Store Repositories
==================

The record store is an external collaborator; the renderers only need a store
profile, its products and the opaque content JSON. Two backends are provided:
JSON files on disk and Redis. Saves are last-write-wins with no version check.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import asyncio
import json
import os
import tempfile

from pydantic import ValidationError

from storefront.config.database import db_manager
from storefront.config.logging import get_logger
from storefront.config.settings import Settings, get_settings
from storefront.core.errors import StorageError, StoreNotFoundError
from storefront.models.schemas import Product, StoreRecord

logger = get_logger(__name__)

ContentPayload = Union[str, Dict[str, Any], None]


class StoreRepository(ABC):
    """Abstract record store."""

    @abstractmethod
    async def find_published_store(self, domain: str) -> Optional[StoreRecord]:
        """Find the published store serving a domain name."""
        pass

    @abstractmethod
    async def get_store(self, store_id: str) -> StoreRecord:
        """Get a store by id; raises StoreNotFoundError."""
        pass

    @abstractmethod
    async def list_products(self, store_id: str) -> List[Product]:
        """All products of a store in catalog order."""
        pass

    @abstractmethod
    async def load_content(self, store_id: str) -> ContentPayload:
        """The raw persisted content document, or None for a new store."""
        pass

    @abstractmethod
    async def save_content(self, store_id: str, payload: str) -> None:
        """Replace the persisted content document."""
        pass

    @abstractmethod
    async def put_store(self, store: StoreRecord, products: Optional[List[Product]] = None) -> None:
        """Create or replace a store record and its products."""
        pass

    async def close(self) -> None:
        pass


def _normalize_domain(domain: str) -> str:
    return (domain or "").strip().lower()


class JSONFileStoreRepository(StoreRepository):
    """One JSON file per store under ``<storage_path>/stores``."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root or get_settings().storage_path / "stores")
        self.root.mkdir(parents=True, exist_ok=True)
        self.logger: Any = logger.bind(repository="file")

    def _path(self, store_id: str) -> Path:
        safe = "".join(c for c in str(store_id) if c.isalnum() or c in "-_")
        if not safe:
            raise StoreNotFoundError(store_id)
        return self.root / f"{safe}.json"

    def _read(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            raise StoreNotFoundError(path.stem)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    def _write(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            fd, tmp = tempfile.mkstemp(dir=self.root, suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            Path(tmp).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def _record(self, data: Dict[str, Any]) -> StoreRecord:
        try:
            return StoreRecord.model_validate(data.get("store") or {})
        except ValidationError as e:
            raise StorageError(f"Malformed store record: {e.errors()[0]['msg']}") from e

    def _find_published(self, domain: str) -> Optional[StoreRecord]:
        wanted = _normalize_domain(domain)
        for path in sorted(self.root.glob("*.json")):
            try:
                record = self._record(self._read(path))
            except StorageError as e:
                self.logger.warning("Skipping unreadable store file", file=path.name, error=str(e))
                continue
            if record.is_published and _normalize_domain(record.domain_name) == wanted:
                return record
        return None

    async def find_published_store(self, domain: str) -> Optional[StoreRecord]:
        return await asyncio.to_thread(self._find_published, domain)

    async def get_store(self, store_id: str) -> StoreRecord:
        data = await asyncio.to_thread(self._read, self._path(store_id))
        return self._record(data)

    async def list_products(self, store_id: str) -> List[Product]:
        data = await asyncio.to_thread(self._read, self._path(store_id))
        products: List[Product] = []
        for raw in data.get("products") or []:
            try:
                products.append(Product.model_validate(raw))
            except ValidationError as e:
                self.logger.warning("Skipping malformed product", store_id=store_id, error=str(e))
        return products

    async def load_content(self, store_id: str) -> ContentPayload:
        data = await asyncio.to_thread(self._read, self._path(store_id))
        return data.get("content")

    def _save_content(self, store_id: str, payload: str) -> None:
        path = self._path(store_id)
        data = self._read(path)
        data["content"] = payload
        self._write(path, data)

    async def save_content(self, store_id: str, payload: str) -> None:
        await asyncio.to_thread(self._save_content, store_id, payload)
        self.logger.info("Content saved", store_id=store_id, size=len(payload))

    async def put_store(self, store: StoreRecord, products: Optional[List[Product]] = None) -> None:
        path = self._path(store.id)
        data: Dict[str, Any] = {}
        if path.exists():
            data = await asyncio.to_thread(self._read, path)
        data["store"] = store.model_dump(by_alias=True, mode="json")
        if products is not None:
            data["products"] = [p.model_dump(by_alias=True) for p in products]
        await asyncio.to_thread(self._write, path, data)


class RedisStoreRepository(StoreRepository):
    """Store records kept as JSON strings in Redis."""

    def __init__(self, client: Any = None, prefix: Optional[str] = None) -> None:
        self._client = client
        self.prefix = prefix or get_settings().redis_key_prefix
        self.logger: Any = logger.bind(repository="redis")

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = db_manager.get_redis_client()
        return self._client

    def _key(self, *parts: str) -> str:
        return ":".join([self.prefix, *parts])

    async def _get_json(self, key: str) -> Any:
        try:
            raw = await self.client.get(key)
        except Exception as e:
            self.logger.error("Redis read failed", key=key, error=str(e))
            raise StorageError(f"Redis read failed for {key}: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Malformed JSON at {key}") from e

    async def _set(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except Exception as e:
            self.logger.error("Redis write failed", key=key, error=str(e))
            raise StorageError(f"Redis write failed for {key}: {e}") from e

    async def find_published_store(self, domain: str) -> Optional[StoreRecord]:
        try:
            store_id = await self.client.get(self._key("domain", _normalize_domain(domain)))
        except Exception as e:
            raise StorageError(f"Redis read failed: {e}") from e
        if store_id is None:
            return None
        try:
            record = await self.get_store(store_id)
        except StoreNotFoundError:
            return None
        # Domain keys can outlive a rename
        if _normalize_domain(record.domain_name) != _normalize_domain(domain):
            return None
        return record if record.is_published else None

    async def get_store(self, store_id: str) -> StoreRecord:
        data = await self._get_json(self._key("store", str(store_id)))
        if data is None:
            raise StoreNotFoundError(store_id)
        try:
            return StoreRecord.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Malformed store record: {e.errors()[0]['msg']}") from e

    async def list_products(self, store_id: str) -> List[Product]:
        data = await self._get_json(self._key("products", str(store_id))) or []
        products: List[Product] = []
        for raw in data:
            try:
                products.append(Product.model_validate(raw))
            except ValidationError as e:
                self.logger.warning("Skipping malformed product", store_id=store_id, error=str(e))
        return products

    async def load_content(self, store_id: str) -> ContentPayload:
        try:
            return await self.client.get(self._key("content", str(store_id)))
        except Exception as e:
            raise StorageError(f"Redis read failed: {e}") from e

    async def save_content(self, store_id: str, payload: str) -> None:
        await self.get_store(store_id)
        await self._set(self._key("content", str(store_id)), payload)
        self.logger.info("Content saved", store_id=store_id, size=len(payload))

    async def _delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except Exception as e:
            self.logger.error("Redis delete failed", key=key, error=str(e))
            raise StorageError(f"Redis delete failed for {key}: {e}") from e

    async def put_store(self, store: StoreRecord, products: Optional[List[Product]] = None) -> None:
        previous = await self._get_json(self._key("store", store.id))
        domain = _normalize_domain(store.domain_name)
        if isinstance(previous, dict):
            old_domain = _normalize_domain(previous.get("domainName") or previous.get("domain_name") or "")
            if old_domain and old_domain != domain:
                await self._delete(self._key("domain", old_domain))
        await self._set(self._key("store", store.id), store.model_dump_json(by_alias=True))
        await self._set(self._key("domain", domain), store.id)
        if products is not None:
            await self._set(
                self._key("products", store.id),
                json.dumps([p.model_dump(by_alias=True) for p in products]),
            )


def create_store_repository(settings: Optional[Settings] = None) -> StoreRepository:
    """Build the repository for the configured backend."""
    settings = settings or get_settings()
    if settings.store_backend == "redis":
        return RedisStoreRepository(prefix=settings.redis_key_prefix)
    return JSONFileStoreRepository(settings.storage_path / "stores")


_repository: Optional[StoreRepository] = None


def get_store_repository() -> StoreRepository:
    """Get the global store repository."""
    global _repository
    if _repository is None:
        _repository = create_store_repository()
    return _repository


def set_store_repository(repository: Optional[StoreRepository]) -> None:
    global _repository
    _repository = repository
