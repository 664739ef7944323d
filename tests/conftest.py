"""Pytest configuration for storefront tests."""

import os
import re

# Point the module-level engine at an in-memory database before trellis is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trellis.ai.provider import AIProvider, get_ai_provider
from trellis.config import StoreConfig, get_config, set_config
from trellis.database import Base, get_db
from trellis.errors import ProviderError
from trellis.identity import create_access_token
from trellis.main import app
from trellis.models import Product

ADMIN_KEY = "test-admin-key"

# One shared connection so every session sees the same in-memory database
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ---------------------------------------------------------------------------
# Fake AI provider: word-count embeddings over a fixed vocabulary, so
# products sharing words are similar and the ranking is predictable.
# ---------------------------------------------------------------------------

VOCABULARY = ["wireless", "audio", "headphones", "earbuds", "noise", "office", "chair", "ergonomic", "desk", "lamp"]


class FakeProvider(AIProvider):
    name = "fake"

    def __init__(self):
        self.fail = False
        self.replies = []
        self.default_reply = "Here is a helpful answer."
        self.embed_calls = []
        self.complete_calls = []

    def embed(self, text):
        self.embed_calls.append(text)
        if self.fail:
            raise ProviderError("provider unavailable")
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(w)) for w in VOCABULARY]

    def complete(self, messages, max_tokens=None, json_mode=False):
        self.complete_calls.append({"messages": messages, "max_tokens": max_tokens, "json_mode": json_mode})
        if self.fail:
            raise ProviderError("provider unavailable")
        if self.replies:
            return self.replies.pop(0)
        return self.default_reply


SAMPLE_PRODUCTS = [
    dict(name="Wireless Headphones", description="Noise cancelling wireless audio headphones",
         price=149.99, original_price=199.99, category="Electronics", image="headphones.jpg",
         tags=["audio", "sale"], featured=True),
    dict(name="Wireless Earbuds", description="Compact wireless audio earbuds",
         price=79.99, category="Electronics", image="earbuds.jpg", tags=["audio"]),
    dict(name="Office Chair", description="Ergonomic office chair with lumbar support",
         price=299.99, category="Home & Garden", image="chair.jpg", tags=["office"]),
    dict(name="Desk Lamp", description="Adjustable office desk lamp",
         price=39.99, category="Home & Garden", image="lamp.jpg", tags=[], in_stock=False),
]


@pytest.fixture(scope="function", autouse=True)
def store_config():
    """Known configuration for every test, restored afterwards."""
    previous = get_config()
    config = StoreConfig(admin_api_key=ADMIN_KEY, database_url="sqlite://")
    set_config(config)
    yield config
    set_config(previous)


@pytest.fixture(scope="function")
def db_session():
    """
    Create fresh database for each test.
    This ensures tests don't interfere with each other.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def products(db_session):
    """Four products with ids 1..4; the desk lamp is out of stock."""
    rows = [Product(**data) for data in SAMPLE_PRODUCTS]
    db_session.add_all(rows)
    db_session.commit()
    for row in rows:
        db_session.refresh(row)
    return rows


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(db_session, provider):
    """TestClient with the database and AI provider dependencies overridden."""

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_provider] = lambda: provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def bearer(user_id):
    """Authorization header for a signed-in user."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def session(session_id):
    """Header identifying an anonymous visitor."""
    return {"X-Session-Id": session_id}


def admin():
    return {"X-Admin-API-Key": ADMIN_KEY}
