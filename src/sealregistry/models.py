"""
Record types for sealregistry.

Records are frozen: a status change produces a new record that replaces
the old one inside the ledger, so readers only ever hold committed state.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentStatus(str, Enum):
    """Default document statuses. The allowed set itself is configuration."""
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class BatchStatus(str, Enum):
    SEALED = "sealed"


def to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


@dataclass(frozen=True)
class DocumentInput:
    """One document submission, already validated at the boundary."""
    content_hash: bytes
    title: str
    description: str
    category: str
    signature: bytes
    merkle_root: bytes
    public_key: bytes
    merkle_path: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class DocumentRecord:
    """A sealed document."""
    id: int
    content_hash: bytes
    title: str
    description: str
    category: str
    signature: bytes
    merkle_root: bytes
    public_key: bytes
    owner: str
    status: str
    sealed_at: datetime
    merkle_path: tuple[bytes, ...] = ()

    def with_status(self, status: str) -> "DocumentRecord":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content_hash": to_hex(self.content_hash),
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "signature": to_hex(self.signature),
            "merkle_root": to_hex(self.merkle_root),
            "public_key": to_hex(self.public_key),
            "owner": self.owner,
            "status": self.status,
            "sealed_at": self.sealed_at.isoformat(),
            "merkle_path": [to_hex(node) for node in self.merkle_path],
        }


@dataclass(frozen=True)
class BatchRecord:
    """A group of documents sealed by one batch call, in submission order."""
    id: int
    document_ids: tuple[int, ...]
    status: str
    owner: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "document_ids": list(self.document_ids),
            "status": self.status,
            "owner": self.owner,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class StatusChange:
    """One entry of a document's status history."""
    document_id: int
    previous: str
    new: str
    changed_by: str
    changed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "previous": self.previous,
            "new": self.new,
            "changed_by": self.changed_by,
            "changed_at": self.changed_at.isoformat(),
        }
