"""
External entry points for sealregistry.

Each method validates raw caller input at the boundary (fixed-size
buffers, bounded ASCII text) and hands typed input to the sealing engine.
Buffers may be given as bytes or "0x"-prefixed hex.
"""

from typing import Any, Iterable, Mapping

from .boundary import (
    decode_buffer,
    validate_batch,
    validate_caller,
    validate_document_input,
    validate_id,
    validate_status,
)
from .config import RegistrySettings, get_settings
from .engine import SealingEngine
from .models import BatchRecord, DocumentInput, DocumentRecord
from .primitives import HASH_SIZE, SIGNATURE_SIZE


class SealRegistry:
    """
    Document-sealing registry.

    Example:
        registry = SealRegistry()
        doc_id = registry.seal_document(content_hash, "Deed", "Lot 4", "land",
                                        signature, merkle_root, public_key,
                                        merkle_path, caller="alice")
        registry.update_document_status(doc_id, "revoked", caller="alice")
    """

    def __init__(
        self,
        settings: RegistrySettings | None = None,
        engine: SealingEngine | None = None,
    ):
        self.settings = settings or (engine.settings if engine else get_settings())
        self.engine = engine or SealingEngine(self.settings)

    def seal_document(
        self,
        content_hash: bytes | str,
        title: str,
        description: str,
        category: str,
        signature: bytes | str,
        merkle_root: bytes | str,
        public_key: bytes | str,
        merkle_path: Iterable[bytes | str],
        caller: str,
    ) -> int:
        document = validate_document_input(
            content_hash=content_hash,
            title=title,
            description=description,
            category=category,
            signature=signature,
            merkle_root=merkle_root,
            public_key=public_key,
            merkle_path=merkle_path,
            settings=self.settings,
        )
        return self.engine.seal(document, validate_caller(caller))

    def seal_document_batch(
        self,
        documents: Iterable[DocumentInput | Mapping[str, Any]],
        caller: str,
    ) -> int:
        items = validate_batch(documents, self.settings)
        return self.engine.seal_batch(items, validate_caller(caller))

    def update_document_status(self, document_id: int, new_status: str, caller: str) -> bool:
        status = validate_status(new_status, self.settings)
        return self.engine.update_status(
            validate_id(document_id, "document_id"), status, validate_caller(caller),
        )

    def get_document(self, document_id: int) -> DocumentRecord | None:
        return self.engine.get_document(validate_id(document_id, "document_id"))

    def get_document_by_hash(self, content_hash: bytes | str) -> DocumentRecord | None:
        return self.engine.get_document_by_hash(
            decode_buffer(content_hash, "content_hash", HASH_SIZE)
        )

    def get_batch(self, batch_id: int) -> BatchRecord | None:
        return self.engine.get_batch(validate_id(batch_id, "batch_id"))

    def verify_signature(self, document_id: int, signature: bytes | str) -> bool:
        return self.engine.verify_signature_of(
            validate_id(document_id, "document_id"),
            decode_buffer(signature, "signature", SIGNATURE_SIZE),
        )
