import os
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_AUTOSTART", "false")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from nepp import models  # noqa: E402,F401
from nepp.database import Base  # noqa: E402
from nepp.services.notification_store import NotificationStore  # noqa: E402


def build_session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session_factory():
    return build_session_factory()


@pytest.fixture
def store(session_factory):
    return NotificationStore(session_factory)
