from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel


# Firestore collection names
USERS = "users"
REPORTS = "reports"
REPORT_UPDATES = "report_updates"
CATEGORIES = "categories"
AGENCIES = "agencies"

ALL_COLLECTIONS = [USERS, REPORTS, CATEGORIES, AGENCIES, REPORT_UPDATES]

# (field, operator, value) as accepted by Firestore's where()
Filter = Tuple[str, str, Any]


class Identity(BaseModel):
    """Signed-in identity resolved from a session token."""
    id: str
    email: Optional[str] = None


class BackendError(Exception):
    """Raised by backend clients when a remote call fails."""


class BackendClient(ABC):
    """
    Contract with the hosted backend (identity, rows, blobs).

    Contract:
    - Documents are plain dicts and always include their "id".
    - insert() stamps created_at/updated_at, update() stamps updated_at.
    - Remote failures raise BackendError; "not found" is a None/False return,
      never an exception.
    """

    @abstractmethod
    def verify_session(self, token: str) -> Optional[Identity]:
        """Resolve a session token to an identity, or None if invalid."""
        raise NotImplementedError

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, collection: str, data: Dict, doc_id: Optional[str] = None) -> Dict:
        """Write one row and return it with generated id and timestamps."""
        raise NotImplementedError

    @abstractmethod
    def update(
        self,
        collection: str,
        doc_id: str,
        data: Dict,
        expected: Optional[Dict] = None
    ) -> Optional[Dict]:
        """
        Patch one row and return the updated row.

        When `expected` is given the write only happens if every listed field
        currently holds the listed value. Returns None when the row is missing
        or the precondition does not hold.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None
    ) -> List[Dict]:
        raise NotImplementedError

    @abstractmethod
    def count(self, collection: str, filters: Optional[Sequence[Filter]] = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def upload_blob(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes under path (never overwriting) and return a public URL."""
        raise NotImplementedError

    @abstractmethod
    def delete_blob(self, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> Dict[str, str]:
        """Lightweight connectivity check: {"database": ..., "storage": ...}."""
        raise NotImplementedError
