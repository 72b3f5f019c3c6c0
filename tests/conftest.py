"""Test configuration and fixtures for Grocerly."""
import io
import pytest
from unittest.mock import Mock, AsyncMock
from PIL import Image

from grocerly.config.settings import GrocerlySettings, ImageHostSettings, StoreSettings
from grocerly.db.session import create_cache_engine, create_session_factory
from grocerly.domain.types import GroceryItem, MutationAck
from grocerly.services.grocery_service import GroceryService
from grocerly.store.cache import LocalCache
from grocerly.store.sheets_client import SheetsStore


STORE_URL = "https://script.example.test/macros/s/abc/exec"


@pytest.fixture
def store_settings():
    """Store settings pointing at a fake endpoint."""
    return StoreSettings(APPS_SCRIPT_URL=STORE_URL)


@pytest.fixture
def image_settings():
    """Image host settings with a test key."""
    return ImageHostSettings(API_KEY="test-imgbb-key")


@pytest.fixture
def app_settings(tmp_path):
    """Application settings with an in-memory cache."""
    return GrocerlySettings(
        CACHE_DB_URL="sqlite:///:memory:",
        LOG_FILE=tmp_path / "grocerly.log",
    )


@pytest.fixture
def session_factory():
    """Session factory for a fresh in-memory cache database."""
    engine = create_cache_engine("sqlite:///:memory:")
    return create_session_factory(engine)


@pytest.fixture
def cache(session_factory):
    """Empty local cache."""
    return LocalCache(session_factory)


@pytest.fixture
def groceries():
    """A small list of items in store order."""
    return [
        GroceryItem(id="1", name="Milk", price="50", image_url="http://x/m.jpg"),
        GroceryItem(id="2", name="Bread", price="35.5", image_url=""),
        GroceryItem(id="3", name="Eggs", price="120", image_url="http://x/e.jpg"),
    ]


@pytest.fixture
def mock_store(groceries):
    """Mock store adapter that acknowledges every call."""
    mock = Mock(spec=SheetsStore)
    mock.fetch_all = AsyncMock(return_value=list(groceries))
    mock.add = AsyncMock(return_value=MutationAck(status="success"))
    mock.update = AsyncMock(return_value=MutationAck(status="success"))
    mock.delete = AsyncMock(return_value=MutationAck(status="success"))
    return mock


@pytest.fixture
def grocery_service(mock_store, cache):
    """Service with a mock store and an in-memory cache."""
    return GroceryService(mock_store, cache, clock=lambda: 1700000000123)


@pytest.fixture
def loaded_service(grocery_service, cache, groceries):
    """Service whose cache already holds the sample list."""
    cache.save(groceries)
    return grocery_service


@pytest.fixture
def make_image_bytes():
    """Factory encoding a solid-colour image in memory."""
    def _make(size=(1200, 900), mode="RGB", format_="PNG") -> bytes:
        color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
        img = Image.new(mode, size, color=color)
        out = io.BytesIO()
        img.save(out, format=format_)
        return out.getvalue()
    return _make
