"""Shared fixtures: real Ed25519 signers and self-consistent merkle proofs."""

import hashlib
import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

# Add parent src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sealregistry import (
    RegistrySettings,
    SealRegistry,
    SealingEngine,
    build_merkle_path,
    compute_merkle_root,
    pack_public_key,
    pack_signature,
)


def content_hash_of(label: str) -> bytes:
    return hashlib.sha256(label.encode("utf-8")).digest()


def raw_public_key(private_key: ed25519.Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def make_document(private_key: ed25519.Ed25519PrivateKey, label: str, siblings: int = 3) -> dict:
    """Build seal_document kwargs with a valid signature and merkle path."""
    content_hash = content_hash_of(label)
    leaves = [content_hash] + [content_hash_of(f"{label}/sibling-{i}") for i in range(siblings)]

    return {
        "content_hash": content_hash,
        "title": f"Doc {label}",
        "description": f"Description of {label}",
        "category": "test",
        "signature": pack_signature(private_key.sign(content_hash)),
        "merkle_root": compute_merkle_root(leaves),
        "public_key": pack_public_key(raw_public_key(private_key)),
        "merkle_path": build_merkle_path(leaves, 0),
    }


@pytest.fixture
def signer() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def settings() -> RegistrySettings:
    return RegistrySettings(
        allowed_statuses=["active", "revoked", "expired"],
        terminal_statuses=[],
        enforce_proofs=True,
        enforce_signatures=True,
        signature_scheme="ed25519",
    )


@pytest.fixture
def engine(settings) -> SealingEngine:
    return SealingEngine(settings)


@pytest.fixture
def registry(engine) -> SealRegistry:
    return SealRegistry(engine=engine)

