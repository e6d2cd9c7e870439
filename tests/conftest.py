"""
Pytest configuration and fixtures for tests.

Settings are read from the environment when app modules are imported, so
the required variables are set here before anything from app is loaded.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PROMO_CODES", "{}")

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.models.photo import Photo
from app.models import order as _order_models  # noqa: F401


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (FastAPI runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_photo(session):
    """Factory creating published photos."""

    def _make(filename: str = "IMG_0001.jpg", is_published: bool = True) -> Photo:
        photo = Photo(
            filename=filename,
            original_path=f"galleries/test/{filename}",
            preview_url=f"https://cdn.test/previews/{filename}",
            is_published=is_published,
        )
        session.add(photo)
        session.commit()
        session.refresh(photo)
        return photo

    return _make


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def client(engine):
    from fastapi.testclient import TestClient

    from app.database import get_session
    from app.main import app

    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
