"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NODE_RPC_URLS", "1=http://localhost:8027")
os.environ.setdefault("ENVIRONMENT", "test")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from app.config.database import create_session_maker  # noqa: E402
from app.models import Base  # noqa: E402
from app.repositories.chain_store import ChainStore  # noqa: E402
from tests.factories import FakeChainClient  # noqa: E402


@pytest.fixture
def fake_client():
    """Empty in-memory node of shard 1."""
    return FakeChainClient(shard_number=1)


@pytest_asyncio.fixture
async def store(tmp_path):
    """ChainStore over a fresh SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'replica.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield ChainStore(create_session_maker(engine))

    await engine.dispose()
