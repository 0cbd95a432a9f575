"""
Shared test fixtures: throwaway SQLite settings store, price book, quote session.
"""

import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point the settings store at a test database before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from signquote import models  # noqa: F401  (registers tables on Base)
from signquote.database import Base
from signquote.price_book import PriceBookStore, default_price_book
from signquote.quote_session import QuoteSession


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    """Price book store bound to the test database."""
    return PriceBookStore(session_factory=TestingSessionLocal)


@pytest.fixture
def prices():
    """Factory price book."""
    return default_price_book()


@pytest.fixture
def quote(prices):
    """Fresh quote session created at a fixed time."""
    return QuoteSession(prices, now=datetime(2026, 10, 18, 14, 52))


@pytest.fixture
def settings_engine():
    """Engine behind the test settings store."""
    return engine
