"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
Seed helpers live in tests/fixtures/recruitment.py.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.models import Base
from tests.mocks.service_mocks import RecordingChannel
from notification.service import NotificationDispatcher, NotificationService
from notification.templates import TemplateResolver


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests that run against the SQLite test store"
    )


@pytest.fixture
def engine():
    """In-memory SQLite engine with every table created, one per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def dispatcher(channel, session_factory):
    return NotificationDispatcher(
        channel=channel,
        from_address="Recruitment Team <noreply@example.com>",
        session_factory=session_factory,
    )


@pytest.fixture
def resolver(session_factory):
    return TemplateResolver(session_factory)


@pytest.fixture
def notification_service(dispatcher, resolver):
    """Notification service in sync mode, delivering through the recording channel."""
    return NotificationService(dispatcher=dispatcher, resolver=resolver, use_async_queue=False)
