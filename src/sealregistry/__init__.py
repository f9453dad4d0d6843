"""
sealregistry: tamper-evident document-sealing registry.

Records a document's content hash with its signature, public key and
merkle provenance under a sequential id, and serves lookups, owner-gated
status changes and re-verification. Document content is never stored.
"""

from .boundary import (
    decode_buffer,
    document_input_from_mapping,
    validate_batch,
    validate_document_input,
)
from .config import RegistrySettings, clear_settings_cache, get_settings
from .engine import SealingEngine
from .errors import (
    AlreadyExistsError,
    BoundaryError,
    ErrorCode,
    InvalidProofError,
    InvalidSignatureError,
    InvalidStatusError,
    LedgerError,
    NotAuthorizedError,
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
    DocumentStatus,
    StatusChange,
)
from .primitives import (
    HASH_SIZE,
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
    Ed25519Verifier,
    SignatureVerifier,
    SizeOnlyVerifier,
    build_merkle_path,
    compute_merkle_root,
    get_verifier,
    pack_public_key,
    pack_signature,
    verify_merkle_path,
    verify_signature,
)
from .registry import SealRegistry
from .sequence import SequenceAllocator
from .status import StatusController, TerminalStatusPolicy
from .summary import document_summary, format_batch_summary, format_document_summary

__version__ = "0.1.0"
__all__ = [
    # Entry points
    "SealRegistry",
    "SealingEngine",
    # Ledgers
    "DocumentLedger",
    "BatchLedger",
    "SequenceAllocator",
    # Status control
    "StatusController",
    "TerminalStatusPolicy",
    # Records
    "DocumentInput",
    "DocumentRecord",
    "DocumentStatus",
    "BatchRecord",
    "BatchStatus",
    "StatusChange",
    # Primitives
    "HASH_SIZE",
    "SIGNATURE_SIZE",
    "PUBLIC_KEY_SIZE",
    "SignatureVerifier",
    "Ed25519Verifier",
    "SizeOnlyVerifier",
    "get_verifier",
    "verify_signature",
    "verify_merkle_path",
    "compute_merkle_root",
    "build_merkle_path",
    "pack_signature",
    "pack_public_key",
    # Boundary
    "decode_buffer",
    "validate_document_input",
    "document_input_from_mapping",
    "validate_batch",
    # Config
    "RegistrySettings",
    "get_settings",
    "clear_settings_cache",
    # Summaries
    "document_summary",
    "format_document_summary",
    "format_batch_summary",
    # Errors
    "ErrorCode",
    "LedgerError",
    "SealRegistryError",
    "AlreadyExistsError",
    "NotAuthorizedError",
    "NotFoundError",
    "InvalidStatusError",
    "InvalidProofError",
    "InvalidSignatureError",
    "BoundaryError",
    "VerificationResult",
]
