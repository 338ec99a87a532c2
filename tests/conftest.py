import pytest
from unittest.mock import AsyncMock, MagicMock

from PIL import Image

from factories import InMemoryCourseStore, InMemoryRoundStore


# ================================================================
# Fixtures
# ================================================================

@pytest.fixture
def mock_pool():
    pool = MagicMock()
    conn = AsyncMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    conn.transaction = MagicMock()
    conn.transaction.return_value.__aenter__.return_value = AsyncMock()
    return pool, conn


@pytest.fixture
def course_store():
    return InMemoryCourseStore()


@pytest.fixture
def round_store():
    return InMemoryRoundStore()


@pytest.fixture
def scorecard_image(tmp_path):
    """A small RGB scorecard photo under an originals/ directory."""
    originals = tmp_path / "scans" / "originals"
    originals.mkdir(parents=True)
    path = originals / "card.jpg"
    Image.new("RGB", (400, 300), color=(200, 220, 200)).save(path, format="JPEG")
    return path

