"""
Content Service
===============

Load and save boundary for content documents. One save request per call;
concurrent saves race and the last write wins.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from storefront.config.logging import get_logger
from storefront.core.content.parser import ContentDocumentParser, get_content_parser, serialize_content
from storefront.core.errors import StorageError, StoreNotFoundError
from storefront.core.storage.repository import StoreRepository, get_store_repository
from storefront.models.schemas import ContentDocument, ContentParseResult, SaveResult

logger = get_logger(__name__)


class ContentService:
    """Reads and writes a store's content document through the repository."""

    def __init__(
        self,
        repository: Optional[StoreRepository] = None,
        parser: Optional[ContentDocumentParser] = None,
    ) -> None:
        self.repository = repository or get_store_repository()
        self.parser = parser or get_content_parser()
        self.logger: Any = logger.bind(component="content_service")

    async def load(self, store_id: str) -> ContentParseResult:
        """
        Load a store's content document.

        Raises:
            StoreNotFoundError: If the store does not exist
            StorageError: If the record store fails
        """
        raw = await self.repository.load_content(store_id)
        result = self.parser.parse(raw)
        if result.warnings:
            self.logger.warning(
                "Content loaded with recovered fields", store_id=store_id, warnings=result.warnings
            )
        return result

    async def save(self, store_id: str, content: ContentDocument) -> SaveResult:
        """Persist a content document; failures are reported, not raised."""
        payload = serialize_content(content)
        try:
            await self.repository.save_content(store_id, payload)
        except StoreNotFoundError as e:
            self.logger.warning("Save for unknown store", store_id=store_id)
            return SaveResult(success=False, message=f"Error saving: {e}", store_id=store_id)
        except StorageError as e:
            self.logger.error("Content save failed", store_id=store_id, error=str(e))
            return SaveResult(success=False, message=f"Error saving: {e}", store_id=store_id)

        self.logger.info(
            "Content saved",
            store_id=store_id,
            element_states=len(content.sparse_states()),
        )
        return SaveResult(
            success=True,
            message="Changes saved successfully",
            store_id=store_id,
            saved_at=datetime.now(timezone.utc),
        )
