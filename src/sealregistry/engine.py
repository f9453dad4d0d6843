"""
Sealing engine for sealregistry.

The ONLY place records are born. Stateless orchestrator over the document
and batch ledgers:

1. Merkle inclusion: content hash -> merkle root (if enforced)
2. Signature over the content hash (if enforced)
3. Uniqueness against the document ledger
4. Id allocation and commit

Every mutating call runs under one engine lock, so check-then-insert,
read-then-write status changes and whole batches are each atomic. A
failing call leaves no trace in either ledger or counter.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Sequence

from .config import RegistrySettings, get_settings
from .errors import (
    AlreadyExistsError,
    ErrorCode,
    InvalidProofError,
    InvalidSignatureError,
    LedgerError,
    NotFoundError,
    SealRegistryError,
    VerificationResult,
)
from .ledger import BatchLedger, DocumentLedger
from .models import (
    BatchRecord,
    BatchStatus,
    DocumentInput,
    DocumentRecord,
    StatusChange,
    to_hex,
)
from .primitives import (
    SignatureVerifier,
    bytes_equal,
    get_verifier,
    verify_merkle_path,
)
from .status import StatusController, TerminalStatusPolicy

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SealingEngine:
    """
    Validates and commits seals; serves reads from the ledgers.

    Args:
        settings: Registry settings (default: loaded from environment)
        verifier: Signature primitive (default: from settings.signature_scheme)
        clock: Source of sealed_at / created_at timestamps
    """

    def __init__(
        self,
        settings: RegistrySettings | None = None,
        verifier: SignatureVerifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or get_settings()
        self.verifier = verifier or get_verifier(self.settings.signature_scheme)
        self.clock = clock

        policy = None
        if self.settings.terminal_statuses:
            policy = TerminalStatusPolicy(self.settings.terminal_statuses)
        self.status_controller = StatusController(self.settings.allowed_statuses, policy)

        self.documents = DocumentLedger(self.status_controller)
        self.batches = BatchLedger()
        self._history: dict[int, list[StatusChange]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_proof(self, document: DocumentInput) -> None:
        if verify_merkle_path(document.content_hash, document.merkle_path, document.merkle_root):
            return
        logger.warning(
            "Seal rejected: merkle proof does not reach root",
            extra={
                "content_hash": to_hex(document.content_hash),
                "merkle_root": to_hex(document.merkle_root),
                "path_length": len(document.merkle_path),
            },
        )
        raise InvalidProofError(
            "Merkle path does not recompute the merkle root",
            content_hash=to_hex(document.content_hash),
            merkle_root=to_hex(document.merkle_root),
        )

    def _check_signature(self, document: DocumentInput) -> None:
        if self.verifier.verify(document.content_hash, document.signature, document.public_key):
            return
        logger.warning(
            "Seal rejected: signature does not verify",
            extra={
                "content_hash": to_hex(document.content_hash),
                "scheme": self.verifier.name,
            },
        )
        raise InvalidSignatureError(
            f"{self.verifier.name} signature verification failed",
            content_hash=to_hex(document.content_hash),
            scheme=self.verifier.name,
        )

    def _check_unique(self, document: DocumentInput) -> None:
        existing = self.documents.get_id_by_hash(document.content_hash)
        if existing is None:
            return
        logger.warning(
            "Seal rejected: content hash already sealed",
            extra={"content_hash": to_hex(document.content_hash), "existing_id": existing},
        )
        raise AlreadyExistsError(
            f"Content hash already sealed as document {existing}",
            content_hash=to_hex(document.content_hash),
            existing_id=existing,
        )

    def _validate(self, document: DocumentInput) -> None:
        if self.settings.enforce_proofs:
            self._check_proof(document)
        if self.settings.enforce_signatures:
            self._check_signature(document)
        self._check_unique(document)

    def _commit(self, document: DocumentInput, caller: str, sealed_at: datetime) -> DocumentRecord:
        record = DocumentRecord(
            id=self.documents.next_id(),
            content_hash=document.content_hash,
            title=document.title,
            description=document.description,
            category=document.category,
            signature=document.signature,
            merkle_root=document.merkle_root,
            public_key=document.public_key,
            owner=caller,
            status=self.status_controller.initial_status,
            sealed_at=sealed_at,
            merkle_path=tuple(document.merkle_path),
        )
        self.documents.insert(record)
        self._history[record.id] = []
        return record

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def seal(self, document: DocumentInput, caller: str) -> int:
        """
        Seal one document.

        Returns:
            The new document id (1 for the first seal)

        Raises:
            InvalidProofError: Merkle path does not reach the root (if enforced)
            InvalidSignatureError: Signature does not verify (if enforced)
            AlreadyExistsError: Content hash already sealed
        """
        with self._lock:
            self._validate(document)
            record = self._commit(document, caller, self.clock())

        logger.info(
            "Document sealed",
            extra={
                "document_id": record.id,
                "content_hash": to_hex(record.content_hash),
                "owner": caller,
            },
        )
        return record.id

    def seal_batch(self, documents: Sequence[DocumentInput], caller: str) -> int:
        """
        Seal documents as one unit, in submission order.

        Every item is validated before anything is committed. Any failure,
        including the same content hash appearing twice in the batch,
        fails the whole batch with no ids consumed.

        Returns:
            The new batch id

        Raises:
            SealRegistryError: The first failing item's error, with its index
        """
        if not documents:
            raise ValueError("batch must contain at least one document")

        with self._lock:
            seen: dict[bytes, int] = {}
            for index, document in enumerate(documents):
                try:
                    self._validate(document)
                except SealRegistryError as exc:
                    raise type(exc)(
                        f"Batch item {index}: {exc}",
                        index=index,
                        **exc.error.details,
                    ) from exc

                first = seen.get(document.content_hash)
                if first is not None:
                    logger.warning(
                        "Batch rejected: duplicate content hash within batch",
                        extra={"content_hash": to_hex(document.content_hash), "index": index},
                    )
                    raise AlreadyExistsError(
                        f"Batch item {index}: content hash repeats item {first}",
                        index=index,
                        first_index=first,
                        content_hash=to_hex(document.content_hash),
                    )
                seen[document.content_hash] = index

            created_at = self.clock()
            document_ids = tuple(
                self._commit(document, caller, created_at).id for document in documents
            )
            batch = BatchRecord(
                id=self.batches.next_id(),
                document_ids=document_ids,
                status=BatchStatus.SEALED.value,
                owner=caller,
                created_at=created_at,
            )
            self.batches.insert(batch)

        logger.info(
            "Batch sealed",
            extra={"batch_id": batch.id, "document_ids": list(document_ids), "owner": caller},
        )
        return batch.id

    def update_status(self, document_id: int, new_status: str, caller: str) -> bool:
        """
        Change a document's status as its owner.

        Returns:
            True on success

        Raises:
            NotFoundError, NotAuthorizedError, InvalidStatusError
        """
        with self._lock:
            previous = self.documents.set_status(document_id, caller, new_status)
            change = StatusChange(
                document_id=document_id,
                previous=previous,
                new=new_status,
                changed_by=caller,
                changed_at=self.clock(),
            )
            self._history[document_id].append(change)

        logger.info(
            "Document status changed",
            extra={
                "document_id": document_id,
                "from_status": previous,
                "to_status": new_status,
                "changed_by": caller,
            },
        )
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_document(self, document_id: int) -> DocumentRecord | None:
        return self.documents.get(document_id)

    def get_document_by_hash(self, content_hash: bytes) -> DocumentRecord | None:
        document_id = self.documents.get_id_by_hash(content_hash)
        if document_id is None:
            return None
        return self.documents.get(document_id)

    def get_batch(self, batch_id: int) -> BatchRecord | None:
        return self.batches.get(batch_id)

    def _require_document(self, document_id: int) -> DocumentRecord:
        record = self.documents.get(document_id)
        if record is None:
            raise NotFoundError(f"Document {document_id} not found", document_id=document_id)
        return record

    def verify_signature_of(self, document_id: int, signature: bytes) -> bool:
        """
        Check a signature against the one sealed for document_id.

        True iff signature byte-equals the stored signature, compared in
        constant time. Never raises for an existing id. Cryptographic
        re-checking of the stored record is verify_document's job.

        Raises:
            NotFoundError: Unknown id
        """
        record = self._require_document(document_id)
        return bytes_equal(signature, record.signature)

    def verify_document(self, document_id: int) -> VerificationResult:
        """
        Re-run the merkle and signature checks over a stored record.

        Raises:
            NotFoundError: Unknown id
        """
        record = self._require_document(document_id)
        errors: list[LedgerError] = []

        if not verify_merkle_path(record.content_hash, record.merkle_path, record.merkle_root):
            errors.append(LedgerError(
                code=ErrorCode.INVALID_PROOF,
                message="Merkle path does not recompute the merkle root",
                details={"document_id": document_id},
            ))

        if not self.verifier.verify(record.content_hash, record.signature, record.public_key):
            errors.append(LedgerError(
                code=ErrorCode.INVALID_SIGNATURE,
                message=f"{self.verifier.name} signature verification failed",
                details={"document_id": document_id},
            ))

        return VerificationResult(valid=len(errors) == 0, errors=errors)

    def status_history(self, document_id: int) -> list[StatusChange]:
        """
        Status changes for a document, oldest first.

        Raises:
            NotFoundError: Unknown id
        """
        self._require_document(document_id)
        with self._lock:
            return list(self._history[document_id])

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def batch_count(self) -> int:
        return len(self.batches)
