"""Pytest configuration and shared fixtures."""

import os
import tempfile

# Settings are read once at import time, so configure them before the
# marketplace package is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_CONFIRMATION_REQUIRED"] = "true"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="marketplace-media-")
os.environ["MEDIA_BASE_URL"] = "http://testserver/media"
os.environ.pop("SMTP_HOST", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.core.access.roles import Role
from marketplace.db.base import Base
import marketplace.db.models  # noqa: F401

from tests.factories import context_for, create_user


@pytest.fixture()
def db_engine():
    """In-memory SQLite engine shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    """FastAPI test client whose requests use the test database."""
    from fastapi.testclient import TestClient

    from marketplace.api.deps import get_db
    from marketplace.api.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def admin(db_session):
    return create_user(db_session, role=Role.ADMIN, email="admin@example.com")


@pytest.fixture()
def user(db_session):
    return create_user(db_session, email="buyer@example.com")


@pytest.fixture()
def seller(db_session):
    return create_user(db_session, role=Role.SELLER, seller_status="approved", email="seller@example.com")


@pytest.fixture()
def admin_ctx(admin):
    return context_for(admin)


@pytest.fixture()
def user_ctx(user):
    return context_for(user)


@pytest.fixture()
def seller_ctx(seller):
    return context_for(seller)
