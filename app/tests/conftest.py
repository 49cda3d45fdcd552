"""
Pytest configuration and fixtures.
"""

import pytest

from app.libs.matching.cache import BackgroundWriter, InMemoryCache
from app.libs.matching.embedding_cache import EmbeddingCache
from app.tests.fakes import FakeEmbedder
from app.utils.db_utils import close_all_connection_pools


@pytest.fixture(autouse=True)
async def cleanup_connection_pools():
    """Close database pools opened by a test."""
    yield
    await close_all_connection_pools()


@pytest.fixture
def memory_store():
    return InMemoryCache(ttl=300, max_size=1000)


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def embedding_cache(memory_store, fake_embedder):
    return EmbeddingCache(memory_store, fake_embedder, BackgroundWriter("test embeddings"), ttl=600)
