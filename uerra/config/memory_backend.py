"""
In-memory backend for local development (USE_MOCK_DB=true) and tests.

Mirrors the FirebaseBackend contract: dict documents, generated ids,
created_at/updated_at stamps, conditional updates and public blob URLs.
"""

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from uerra.config.backend import BackendClient, BackendError, Filter, Identity

logger = logging.getLogger(__name__)


def _matches(doc: Dict, field: str, op: str, value: Any) -> bool:
    current = doc.get(field)
    if op == "==":
        return current == value
    if op == "!=":
        return current != value
    if op == "in":
        return current in value
    if op == "not-in":
        return current not in value
    if op == "array_contains":
        return isinstance(current, list) and value in current
    if op == "array_contains_any":
        return isinstance(current, list) and any(v in current for v in value)
    if current is None:
        return False
    if op == "<":
        return current < value
    if op == "<=":
        return current <= value
    if op == ">":
        return current > value
    if op == ">=":
        return current >= value
    raise BackendError(f"Unsupported filter operator: {op}")


class MemoryBackend(BackendClient):

    def __init__(self, bucket_name: str = "uerra-local"):
        self.bucket_name = bucket_name
        self.collections: Dict[str, Dict[str, Dict]] = {}
        self.blobs: Dict[str, Dict] = {}
        self.sessions: Dict[str, Identity] = {}
        self._lock = threading.Lock()

    def register_session(self, token: str, user_id: str, email: Optional[str] = None) -> Identity:
        identity = Identity(id=user_id, email=email)
        self.sessions[token] = identity
        return identity

    def verify_session(self, token: str) -> Optional[Identity]:
        return self.sessions.get(token)

    def _table(self, collection: str) -> Dict[str, Dict]:
        return self.collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        doc = self._table(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def insert(self, collection: str, data: Dict, doc_id: Optional[str] = None) -> Dict:
        now = datetime.now(timezone.utc)
        doc_id = doc_id or uuid.uuid4().hex
        row = copy.deepcopy({k: v for k, v in data.items() if k != "id"})
        row.update({"id": doc_id, "created_at": now, "updated_at": now})
        with self._lock:
            self._table(collection)[doc_id] = row
        return copy.deepcopy(row)

    def update(
        self,
        collection: str,
        doc_id: str,
        data: Dict,
        expected: Optional[Dict] = None
    ) -> Optional[Dict]:
        with self._lock:
            row = self._table(collection).get(doc_id)
            if row is None:
                return None
            if expected and any(row.get(k) != v for k, v in expected.items()):
                return None
            row.update(copy.deepcopy({k: v for k, v in data.items() if k != "id"}))
            row["updated_at"] = datetime.now(timezone.utc)
            return copy.deepcopy(row)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._table(collection).pop(doc_id, None) is not None

    def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None
    ) -> List[Dict]:
        rows = [
            row for row in self._table(collection).values()
            if all(_matches(row, field, op, value) for field, op, value in filters or [])
        ]
        if order_by:
            # Firestore drops rows lacking the order field; keep that behaviour
            rows = [row for row in rows if row.get(order_by) is not None]
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        if limit:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def count(self, collection: str, filters: Optional[Sequence[Filter]] = None) -> int:
        return len(self.query(collection, filters))

    def upload_blob(self, path: str, data: bytes, content_type: str) -> str:
        with self._lock:
            if path in self.blobs:
                raise BackendError(f"The resource already exists: {path}")
            self.blobs[path] = {"data": bytes(data), "content_type": content_type}
        return f"https://storage.googleapis.com/{self.bucket_name}/{path}"

    def delete_blob(self, path: str) -> None:
        with self._lock:
            if self.blobs.pop(path, None) is None:
                raise BackendError(f"No such object: {path}")

    def ping(self) -> Dict[str, str]:
        return {"database": "connected", "storage": "available"}
