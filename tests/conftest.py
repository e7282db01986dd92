import os
import tempfile
from pathlib import Path

import pytest

# La app crea el engine al importarse: apuntarlo a una base temporal
_tmp_dir = Path(tempfile.mkdtemp(prefix="destress-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_dir / 'destress.db'}"
os.environ.setdefault("VISITOR_STORE", "sql")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from destress.database import Base  # noqa: E402
from destress.dependencies import get_visitor_store  # noqa: E402
from destress.main import app  # noqa: E402
from destress.services.kv_store import MemoryKVStore, SqlKVStore  # noqa: E402


@pytest.fixture
def memory_store():
    return MemoryKVStore()


@pytest.fixture
def sql_store(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'kv.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield SqlKVStore(session)
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(memory_store):
    app.dependency_overrides[get_visitor_store] = lambda: memory_store
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
