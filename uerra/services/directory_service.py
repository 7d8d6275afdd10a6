"""
Directory services - emergency categories and responder agencies.

Both are plain CRUD over their Firestore collections; permission checks
live in the routes (superadmins manage categories, admins manage agencies).
"""

from typing import Dict, List
import logging

from pydantic import BaseModel

from uerra.config.backend import AGENCIES, BackendClient, BackendError, CATEGORIES
from uerra.core.errors import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class _CollectionService:
    collection: str = ""
    label: str = ""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def list(self) -> List[Dict]:
        try:
            rows = self.backend.query(self.collection)
        except BackendError as e:
            logger.error(f"Failed to list {self.collection}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch {self.collection}: {e}")
        return sorted(rows, key=lambda row: (row.get("name") or "").lower())

    def get(self, doc_id: str) -> Dict:
        try:
            row = self.backend.get(self.collection, doc_id)
        except BackendError as e:
            raise PersistenceError(f"Failed to fetch {self.label}: {e}")
        if row is None:
            raise NotFoundError(f"{self.label.capitalize()} {doc_id} not found")
        return row

    def _clean(self, data: Dict) -> Dict:
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip()
            elif isinstance(value, list):
                value = [v.strip() for v in value if isinstance(v, str) and v.strip()]
            cleaned[key] = value
        return cleaned

    def create(self, request: BaseModel) -> Dict:
        data = self._clean(request.model_dump())
        if not data.get("name"):
            raise ValidationError(["Name is required."])
        try:
            row = self.backend.insert(self.collection, data)
        except BackendError as e:
            logger.error(f"Failed to create {self.label}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save {self.label}: {e}")
        logger.info(f"Created {self.label} {row['id']} ({row.get('name')})")
        return row

    def update(self, doc_id: str, request: BaseModel) -> Dict:
        data = self._clean(request.model_dump(exclude_unset=True))
        if "name" in data and not data["name"]:
            raise ValidationError(["Name is required."])
        if not data:
            return self.get(doc_id)
        try:
            row = self.backend.update(self.collection, doc_id, data)
        except BackendError as e:
            logger.error(f"Failed to update {self.label} {doc_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save {self.label}: {e}")
        if row is None:
            raise NotFoundError(f"{self.label.capitalize()} {doc_id} not found")
        logger.info(f"Updated {self.label} {doc_id}: {sorted(data)}")
        return row

    def delete(self, doc_id: str) -> None:
        try:
            deleted = self.backend.delete(self.collection, doc_id)
        except BackendError as e:
            logger.error(f"Failed to delete {self.label} {doc_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete {self.label}: {e}")
        if not deleted:
            raise NotFoundError(f"{self.label.capitalize()} {doc_id} not found")
        logger.info(f"Deleted {self.label} {doc_id}")


class CategoryService(_CollectionService):
    collection = CATEGORIES
    label = "category"


class AgencyService(_CollectionService):
    collection = AGENCIES
    label = "agency"

    def _clean(self, data: Dict) -> Dict:
        has_location = "location" in data
        location = data.pop("location", None)
        cleaned = super()._clean(data)
        if has_location:
            cleaned["location"] = location
        return cleaned
