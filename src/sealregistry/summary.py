"""
Record summary utilities for human-readable inspection.

Extracts key metadata from sealed records without modifying them.
"""

from typing import Any

from .models import BatchRecord, DocumentRecord, to_hex


def document_summary(record: DocumentRecord) -> dict[str, Any]:
    """
    Extract a human-readable summary from a sealed document.

    Args:
        record: A sealed document record

    Returns:
        Dict with id, title, category, status, owner, content_hash and
        sealed_at
    """
    return {
        "id": record.id,
        "title": record.title,
        "category": record.category,
        "status": record.status,
        "owner": record.owner,
        "content_hash": to_hex(record.content_hash),
        "sealed_at": record.sealed_at.isoformat(),
    }


def format_document_summary(record: DocumentRecord) -> str:
    """
    Format a sealed document as a single-line human-readable string.

    Returns:
        String like "#1 Deed [land] active | owner=alice | 0x0102030405..."
    """
    s = document_summary(record)
    hash_short = s["content_hash"][:12] + "..."
    category = s["category"] or "uncategorized"
    return f"#{s['id']} {s['title']} [{category}] {s['status']} | owner={s['owner']} | {hash_short}"


def format_batch_summary(batch: BatchRecord) -> str:
    """
    Format a batch as a single-line string, e.g. "batch #1 (sealed) | 3 documents [1, 2, 3]".
    """
    count = len(batch.document_ids)
    noun = "document" if count == 1 else "documents"
    ids = ", ".join(str(i) for i in batch.document_ids)
    return f"batch #{batch.id} ({batch.status}) | {count} {noun} [{ids}] | owner={batch.owner}"
