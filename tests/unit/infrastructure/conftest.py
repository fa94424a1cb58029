"""Fixtures for store tests: SQLite (aiosqlite) file database with all tables created."""

import pytest

from docvault.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_models,
)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}")
    await init_models(engine)
    yield create_session_factory(engine)
    await engine.dispose()
