"""
Shared fixtures: an in-memory backend, failure injection and an API client
wired to the same backend through dependency overrides.
"""
import os

os.environ.setdefault("USE_MOCK_DB", "true")

import pytest
from fastapi.testclient import TestClient

from uerra.config.backend import AGENCIES, BackendError, CATEGORIES, USERS
from uerra.config.firebase import get_backend
from uerra.config.memory_backend import MemoryBackend
from uerra.main import app

VALID_PAYLOAD = {
    "category_id": "fire",
    "description": "Smoke coming from the building",
    "priority": "high",
}


class FlakyBackend(MemoryBackend):
    """MemoryBackend that raises BackendError for chosen (method, collection) pairs."""

    def __init__(self):
        super().__init__(bucket_name="uerra-test")
        self.failures = set()

    def fail(self, method, collection=None):
        self.failures.add((method, collection))

    def _check(self, method, collection=None):
        if (method, collection) in self.failures:
            raise BackendError(f"simulated {method} failure on {collection}")

    def get(self, collection, doc_id):
        self._check("get", collection)
        return super().get(collection, doc_id)

    def insert(self, collection, data, doc_id=None):
        self._check("insert", collection)
        return super().insert(collection, data, doc_id=doc_id)

    def update(self, collection, doc_id, data, expected=None):
        self._check("update", collection)
        return super().update(collection, doc_id, data, expected=expected)

    def query(self, collection, filters=None, order_by=None, descending=True, limit=None):
        self._check("query", collection)
        return super().query(collection, filters, order_by=order_by, descending=descending, limit=limit)

    def upload_blob(self, path, data, content_type):
        self._check("upload_blob")
        return super().upload_blob(path, data, content_type)

    def delete_blob(self, path):
        self._check("delete_blob")
        return super().delete_blob(path)


def add_user(backend, user_id, role="citizen", agency_id=None, is_active=True, email=None):
    """Create a profile row and a session token ("token-<user_id>") for it."""
    email = email or f"{user_id}@example.com"
    backend.insert(USERS, {
        "email": email,
        "name": user_id.replace("-", " ").title(),
        "role": role,
        "agency_id": agency_id,
        "is_active": is_active,
    }, doc_id=user_id)
    backend.register_session(f"token-{user_id}", user_id, email)
    return backend.get(USERS, user_id)


def auth(user_id):
    return {"Authorization": f"Bearer token-{user_id}"}


@pytest.fixture
def backend():
    """Flaky in-memory backend seeded with a category and two agencies (no failures by default)."""
    memory = FlakyBackend()
    memory.insert(CATEGORIES, {
        "name": "Fire",
        "color": "#d32f2f",
        "tips": ["Stay low under smoke"],
        "suggested_equipment": ["Fire truck"],
        "agency_ids": ["bfp"],
    }, doc_id="fire")
    memory.insert(AGENCIES, {"name": "Bureau of Fire Protection", "type": "fire"}, doc_id="bfp")
    memory.insert(AGENCIES, {"name": "Philippine National Police", "type": "police"}, doc_id="pnp")
    return memory


@pytest.fixture
def citizen(backend):
    return add_user(backend, "citizen-1")


@pytest.fixture
def responder(backend):
    return add_user(backend, "responder-1", role="agency", agency_id="bfp")


@pytest.fixture
def admin(backend):
    return add_user(backend, "admin-1", role="admin")


@pytest.fixture
def superadmin(backend):
    return add_user(backend, "super-1", role="superadmin")


@pytest.fixture
def client(backend):
    """Test client whose get_backend dependency resolves to the test backend."""
    app.dependency_overrides[get_backend] = lambda: backend
    yield TestClient(app)
    app.dependency_overrides.clear()
