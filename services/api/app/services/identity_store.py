"""Identity store backends.

All account variants live in one ``identities`` collection. Email lookups
fetch every record for the address and apply the doctor > patient > person
precedence to the result, so resolution order does not depend on the store
enforcing email uniqueness.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from common.exceptions import DuplicateEmail
from common.models import (
    Identity,
    IdentityKind,
    VerificationStatus,
    normalize_email,
    resolve_precedence,
)

logger = logging.getLogger(__name__)


class IdentityStore(ABC):
    """CRUD over identities with a unique email."""

    @abstractmethod
    def get(self, identity_id: str) -> Optional[Identity]:
        ...

    @abstractmethod
    def find_all_by_email(self, email: str) -> List[Identity]:
        ...

    @abstractmethod
    def create(self, identity: Identity) -> Identity:
        """Insert a new identity. Raises DuplicateEmail if the email is taken."""

    @abstractmethod
    def update(self, identity_id: str, changes: Dict[str, Any]) -> Optional[Identity]:
        """Apply field changes; returns None when the identity does not exist."""

    @abstractmethod
    def list_doctors(self, status: Optional[VerificationStatus] = None) -> List[Identity]:
        ...

    def find_by_email(self, email: str) -> Optional[Identity]:
        return resolve_precedence(self.find_all_by_email(email))

    def close(self) -> None:
        pass


def _storable(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Convert enum and model values so documents only hold plain types."""
    out = {}
    for key, value in changes.items():
        if hasattr(value, "model_dump"):
            value = value.model_dump()
        elif hasattr(value, "value"):
            value = value.value
        out[key] = value
    out["updated_at"] = datetime.utcnow()
    return out


class MongoIdentityStore(IdentityStore):
    """Identities in a MongoDB collection."""

    def __init__(self, collection: Collection, ensure_indexes: bool = True, client=None):
        self.collection = collection
        self._client = client
        if ensure_indexes:
            self.collection.create_index([("email", ASCENDING)], unique=True)
            self.collection.create_index([("firebase_uid", ASCENDING)], sparse=True)
            self.collection.create_index([("kind", ASCENDING), ("verification_status", ASCENDING)])

    @classmethod
    def from_client(cls, client, database: str) -> "MongoIdentityStore":
        return cls(client[database].identities, client=client)

    @staticmethod
    def _object_id(identity_id: str) -> Optional[ObjectId]:
        if not ObjectId.is_valid(identity_id):
            return None
        return ObjectId(identity_id)

    def get(self, identity_id: str) -> Optional[Identity]:
        oid = self._object_id(identity_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return Identity.from_document(doc) if doc else None

    def find_all_by_email(self, email: str) -> List[Identity]:
        cursor = self.collection.find({"email": normalize_email(email)})
        return [Identity.from_document(doc) for doc in cursor]

    def create(self, identity: Identity) -> Identity:
        doc = identity.to_document()
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateEmail()
        return identity.model_copy(update={"id": str(result.inserted_id)})

    def update(self, identity_id: str, changes: Dict[str, Any]) -> Optional[Identity]:
        oid = self._object_id(identity_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": _storable(changes)},
            return_document=ReturnDocument.AFTER,
        )
        return Identity.from_document(doc) if doc else None

    def list_doctors(self, status: Optional[VerificationStatus] = None) -> List[Identity]:
        query: Dict[str, Any] = {"kind": IdentityKind.DOCTOR.value}
        if status is not None:
            query["verification_status"] = status.value
        cursor = self.collection.find(query).sort("created_at", ASCENDING)
        return [Identity.from_document(doc) for doc in cursor]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


class InMemoryIdentityStore(IdentityStore):
    """Process-local store for demo mode and tests."""

    def __init__(self, unique_email: bool = True):
        self.unique_email = unique_email
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, identity_id: str) -> Optional[Identity]:
        with self._lock:
            doc = self._docs.get(identity_id)
            return Identity.from_document(doc) if doc else None

    def find_all_by_email(self, email: str) -> List[Identity]:
        email = normalize_email(email)
        with self._lock:
            return [Identity.from_document(doc) for doc in self._docs.values() if doc["email"] == email]

    def create(self, identity: Identity) -> Identity:
        doc = identity.to_document()
        with self._lock:
            if self.unique_email and any(d["email"] == doc["email"] for d in self._docs.values()):
                raise DuplicateEmail()
            identity_id = str(ObjectId())
            doc["_id"] = identity_id
            self._docs[identity_id] = doc
        return identity.model_copy(update={"id": identity_id})

    def update(self, identity_id: str, changes: Dict[str, Any]) -> Optional[Identity]:
        with self._lock:
            doc = self._docs.get(identity_id)
            if doc is None:
                return None
            doc.update(_storable(changes))
            return Identity.from_document(doc)

    def list_doctors(self, status: Optional[VerificationStatus] = None) -> List[Identity]:
        with self._lock:
            doctors = [
                Identity.from_document(doc)
                for doc in self._docs.values()
                if doc["kind"] == IdentityKind.DOCTOR.value
                and (status is None or doc.get("verification_status") == status.value)
            ]
        return sorted(doctors, key=lambda d: d.created_at)
