"""
Boundary-layer validation for sealregistry.

Everything that reaches the engine has already passed through here:
buffers are exactly 32/512/256 bytes, text is bounded ASCII, and batches
are non-empty and within the configured size. Rejections raise
BoundaryError, never an engine error code. Inputs are rejected, never
truncated or padded.
"""

from dataclasses import asdict
from typing import Any, Iterable, Mapping

from .config import RegistrySettings, get_settings
from .errors import BoundaryError
from .models import DocumentInput
from .primitives import HASH_SIZE, PUBLIC_KEY_SIZE, SIGNATURE_SIZE


def decode_buffer(value: bytes | bytearray | str, field_name: str, size: int) -> bytes:
    """
    Decode a fixed-size buffer given as bytes or "0x"-prefixed hex.

    Raises:
        BoundaryError: If the value is not decodable or not exactly size bytes
    """
    if isinstance(value, str):
        text = value[2:] if value[:2].lower() == "0x" else value
        try:
            data = bytes.fromhex(text)
        except ValueError:
            raise BoundaryError(field_name, "not valid hex") from None
    elif isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    else:
        raise BoundaryError(field_name, f"expected bytes or hex string, got {type(value).__name__}")

    if len(data) != size:
        raise BoundaryError(field_name, f"expected exactly {size} bytes, got {len(data)}")
    return data


def validate_text(value: Any, field_name: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise BoundaryError(field_name, f"expected text, got {type(value).__name__}")
    if not value.isascii():
        raise BoundaryError(field_name, "must be ASCII")
    if len(value) > max_length:
        raise BoundaryError(field_name, f"longer than {max_length} characters")
    return value


def validate_caller(caller: Any) -> str:
    if not isinstance(caller, str) or not caller:
        raise BoundaryError("caller", "caller identity must be a non-empty string")
    return caller


def validate_id(value: Any, field_name: str) -> int:
    """Record ids are plain ints; bool is rejected even though True == 1."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise BoundaryError(field_name, f"expected an integer id, got {type(value).__name__}")
    return value


def validate_status(status: Any, settings: RegistrySettings | None = None) -> str:
    """Bound the status text. Membership in the allowed set is checked by the engine."""
    settings = settings or get_settings()
    return validate_text(status, "status", settings.max_status_length)


def validate_document_input(
    content_hash: bytes | str,
    title: str,
    description: str,
    category: str,
    signature: bytes | str,
    merkle_root: bytes | str,
    public_key: bytes | str,
    merkle_path: Iterable[bytes | str] = (),
    settings: RegistrySettings | None = None,
) -> DocumentInput:
    """
    Validate one document submission.

    Returns:
        DocumentInput with decoded, exactly-sized byte fields

    Raises:
        BoundaryError: On the first offending field
    """
    settings = settings or get_settings()

    if isinstance(merkle_path, (str, bytes, bytearray)):
        raise BoundaryError("merkle_path", "expected a sequence of 32-byte hashes")
    path = tuple(
        decode_buffer(node, f"merkle_path[{i}]", HASH_SIZE)
        for i, node in enumerate(merkle_path)
    )
    if len(path) > settings.max_merkle_path_length:
        raise BoundaryError(
            "merkle_path",
            f"longer than {settings.max_merkle_path_length} nodes",
        )

    return DocumentInput(
        content_hash=decode_buffer(content_hash, "content_hash", HASH_SIZE),
        title=validate_text(title, "title", settings.max_title_length),
        description=validate_text(description, "description", settings.max_description_length),
        category=validate_text(category, "category", settings.max_category_length),
        signature=decode_buffer(signature, "signature", SIGNATURE_SIZE),
        merkle_root=decode_buffer(merkle_root, "merkle_root", HASH_SIZE),
        public_key=decode_buffer(public_key, "public_key", PUBLIC_KEY_SIZE),
        merkle_path=path,
    )


_DOCUMENT_FIELDS = (
    "content_hash", "title", "description", "category",
    "signature", "merkle_root", "public_key",
)


def document_input_from_mapping(
    document: Mapping[str, Any],
    settings: RegistrySettings | None = None,
) -> DocumentInput:
    """
    Validate a document submission given as a mapping.

    "hash" is accepted as an alias for "content_hash".
    """
    fields = dict(document)
    if "content_hash" not in fields and "hash" in fields:
        fields["content_hash"] = fields.pop("hash")

    missing = [name for name in _DOCUMENT_FIELDS if name not in fields]
    if missing:
        raise BoundaryError(missing[0], "missing required field")

    return validate_document_input(
        **{name: fields[name] for name in _DOCUMENT_FIELDS},
        merkle_path=fields.get("merkle_path", ()),
        settings=settings,
    )


def validate_batch(
    documents: Iterable[DocumentInput | Mapping[str, Any]],
    settings: RegistrySettings | None = None,
) -> tuple[DocumentInput, ...]:
    """
    Validate a batch submission, preserving submission order.

    Raises:
        BoundaryError: If the batch is empty, too large, or any item is invalid
    """
    settings = settings or get_settings()
    items: list[DocumentInput] = []
    for index, document in enumerate(documents):
        try:
            if isinstance(document, DocumentInput):
                items.append(validate_document_input(**asdict(document), settings=settings))
            else:
                items.append(document_input_from_mapping(document, settings))
        except BoundaryError as exc:
            raise BoundaryError(f"documents[{index}].{exc.field}", exc.reason) from exc

    if not items:
        raise BoundaryError("documents", "batch must contain at least one document")
    if len(items) > settings.max_batch_size:
        raise BoundaryError("documents", f"batch larger than {settings.max_batch_size} documents")
    return tuple(items)
