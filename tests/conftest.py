import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stakes_ledger.storage import models  # noqa: F401
from stakes_ledger.storage.database import Base
from stakes_ledger.storage.repository import SqlSessionStore


@pytest.fixture
def store() -> SqlSessionStore:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return SqlSessionStore(sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True))
