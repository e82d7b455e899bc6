import os
import tempfile

# Settings are read at import time, so point them at a scratch area first
_scratch = tempfile.mkdtemp(prefix="pahana-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_scratch, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_scratch, "logs")
os.environ["DATA_DIR"] = os.path.join(_scratch, "data")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["DEFAULT_ADMIN_USERNAME"] = "admin"
os.environ["DEFAULT_ADMIN_PASSWORD"] = "admin123"

import pytest
from fastapi.testclient import TestClient

from pahana.core.database import Base, engine
from pahana.main import app
from pahana.storage.csv_store import CSVStore


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    response = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def store(tmp_path):
    csv_store = CSVStore(tmp_path / "data")
    csv_store.init_storage()
    csv_store.load_all()
    return csv_store
