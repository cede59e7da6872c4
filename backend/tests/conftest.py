import os

# Settings are read at import time; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mycoris_api.api.dependencies import get_storage, get_token_issuer
from mycoris_api.core.database import Base, get_db
from mycoris_api.core.security import TokenIssuer, TokenSettings
from mycoris_api.main import app
from mycoris_api.storage.local_storage import LocalStorage


@pytest.fixture
def engine():
    # One shared in-memory database per test
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def token_issuer():
    return TokenIssuer(TokenSettings(secret="test-secret", expires=timedelta(days=30)))


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(session_factory, token_issuer, upload_dir):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    test_storage = LocalStorage(upload_dir, max_size=1024 * 1024,
                                allowed_extensions={".pdf", ".jpg", ".png"})

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    app.dependency_overrides[get_storage] = lambda: test_storage
    yield TestClient(app)
    app.dependency_overrides.clear()
