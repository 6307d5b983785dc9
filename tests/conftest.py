"""
Shared fixtures: an in-memory document store and a couple of admins
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crease.auth.utils import login_admin
from crease.database import init_db
from crease.store import DocumentStore


@pytest.fixture
def store():
    """Document store on a fresh in-memory database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield DocumentStore(sessionmaker(bind=engine))
    engine.dispose()


@pytest.fixture
def admin(store):
    return login_admin(store, "Scorer")


@pytest.fixture
def other_admin(store):
    return login_admin(store, "Umpire")
