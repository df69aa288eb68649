"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
Provides an isolated storage directory, template and store data, and a
FastAPI client wired to a seeded file repository.
"""

import os
import tempfile

os.environ.setdefault("STOREFRONT_ENVIRONMENT", "testing")
os.environ.setdefault("STOREFRONT_STORAGE_PATH", tempfile.mkdtemp(prefix="storefront_test_"))

from pathlib import Path
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient

from storefront.api.main import create_app
from storefront.config.settings import Settings, get_settings
from storefront.core.editor.geometry import StaticGeometry, Viewport
from storefront.core.rendering.static_renderer import StaticRenderer, reset_static_renderer
from storefront.core.storage.repository import JSONFileStoreRepository, set_store_repository
from storefront.core.templates.catalog import TemplateCatalog, reset_template_catalog
from storefront.models.schemas import ContentDocument, Product, StoreRecord, TemplateDocument

from tests.utils.data_generators import ContentDataGenerator, StoreDataGenerator
from tests.utils.helpers import write_store_file


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings loaded from the test environment."""
    return get_settings()


@pytest.fixture(scope="session")
def catalog() -> TemplateCatalog:
    """Template catalog reading the packaged pages."""
    return TemplateCatalog()


@pytest.fixture
def template(catalog: TemplateCatalog) -> TemplateDocument:
    """The default bladesmith template."""
    return catalog.get("bladesmith")


@pytest.fixture
def store() -> StoreRecord:
    """A published store with full contact details."""
    return StoreDataGenerator.store_record()


@pytest.fixture
def products() -> List[Product]:
    """Two active products and one inactive product."""
    return StoreDataGenerator.products()


@pytest.fixture
def content() -> ContentDocument:
    """Content document with customized hero text and background."""
    return ContentDataGenerator.customized()


@pytest.fixture
def geometry() -> StaticGeometry:
    """Geometry with the default 1280x800 viewport and no element rects."""
    return StaticGeometry(Viewport(1280, 800))


@pytest.fixture
def static_renderer(test_settings: Settings) -> StaticRenderer:
    """Static renderer with element state replay off."""
    return StaticRenderer(settings=test_settings, replay_element_states=False)


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Directory holding store JSON files for one test."""
    root = tmp_path / "stores"
    root.mkdir()
    return root


@pytest.fixture
def repository(store_root: Path, store: StoreRecord, products: List[Product]) -> JSONFileStoreRepository:
    """File repository seeded with the published store and a draft store."""
    write_store_file(store_root, store, products, ContentDataGenerator.customized_payload())
    write_store_file(store_root, StoreDataGenerator.draft_record(), [], None)
    return JSONFileStoreRepository(store_root)


@pytest.fixture
def client(repository: JSONFileStoreRepository) -> Generator[TestClient, None, None]:
    """FastAPI test client using the seeded repository."""
    set_store_repository(repository)
    reset_template_catalog()
    reset_static_renderer()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    set_store_repository(None)
    reset_template_catalog()
