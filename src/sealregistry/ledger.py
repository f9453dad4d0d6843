"""
Document and batch ledgers for sealregistry.

Responsibilities:
- Own record storage and the content-hash uniqueness index
- Allocate identifiers (gapless, from 1, never reused)
- No deletes; only a document's status ever changes

Three logical tables (documents by id, hash -> id, batches by id) plus
two counters. Storage is in-memory; the logical contract is what callers
depend on.
"""

import logging
import threading
from typing import Iterator

from .errors import AlreadyExistsError, NotFoundError
from .models import BatchRecord, DocumentRecord, to_hex
from .sequence import SequenceAllocator
from .status import StatusController

logger = logging.getLogger(__name__)


def _claim_id(ids: SequenceAllocator, record_id: int, kind: str) -> None:
    """Consume record_id, which must be the next id in sequence."""
    expected = ids.peek()
    if record_id != expected:
        raise ValueError(f"{kind} id {record_id} out of sequence, expected {expected}")
    ids.allocate()


class DocumentLedger:
    """
    Authoritative id -> DocumentRecord mapping plus the hash index.

    Invariants:
    - No two records share a content_hash
    - Record ids are 1..N with no gaps
    """

    def __init__(self, status_controller: StatusController):
        self.status_controller = status_controller
        self._records: dict[int, DocumentRecord] = {}
        self._by_hash: dict[bytes, int] = {}
        self._ids = SequenceAllocator()
        self._lock = threading.RLock()

    def next_id(self) -> int:
        """The id the next successful insert will commit. Failed inserts consume nothing."""
        return self._ids.peek()

    def exists(self, content_hash: bytes) -> bool:
        return bytes(content_hash) in self._by_hash

    def insert(self, record: DocumentRecord) -> None:
        """
        Commit a new record and index its content hash.

        Raises:
            AlreadyExistsError: If the content hash is already sealed
            ValueError: If record.id is not the next id in sequence
        """
        with self._lock:
            existing = self._by_hash.get(record.content_hash)
            if existing is not None:
                raise AlreadyExistsError(
                    f"Content hash already sealed as document {existing}",
                    content_hash=to_hex(record.content_hash),
                    existing_id=existing,
                )
            _claim_id(self._ids, record.id, "document")
            self._records[record.id] = record
            self._by_hash[record.content_hash] = record.id
        logger.debug("Document committed", extra={"document_id": record.id})

    def get(self, document_id: int) -> DocumentRecord | None:
        return self._records.get(document_id)

    def get_id_by_hash(self, content_hash: bytes) -> int | None:
        return self._by_hash.get(bytes(content_hash))

    def set_status(self, document_id: int, owner: str, new_status: str) -> str:
        """
        Move a document to new_status on behalf of owner.

        Returns:
            The previous status, for audit

        Raises:
            NotFoundError: Unknown id
            NotAuthorizedError: owner is not the recorded owner
            InvalidStatusError: new_status is not allowed
        """
        with self._lock:
            record = self._records.get(document_id)
            if record is None:
                raise NotFoundError(
                    f"Document {document_id} not found",
                    document_id=document_id,
                )
            self.status_controller.check_transition(record, new_status, owner)
            self._records[document_id] = record.with_status(new_status)
            return record.status

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[DocumentRecord]:
        with self._lock:
            records = [self._records[i] for i in sorted(self._records)]
        return iter(records)


class BatchLedger:
    """id -> BatchRecord mapping with its own counter."""

    def __init__(self):
        self._records: dict[int, BatchRecord] = {}
        self._ids = SequenceAllocator()
        self._lock = threading.RLock()

    def next_id(self) -> int:
        return self._ids.peek()

    def insert(self, record: BatchRecord) -> None:
        with self._lock:
            _claim_id(self._ids, record.id, "batch")
            self._records[record.id] = record
        logger.debug("Batch committed", extra={"batch_id": record.id})

    def get(self, batch_id: int) -> BatchRecord | None:
        return self._records.get(batch_id)

    def __len__(self) -> int:
        return len(self._records)
