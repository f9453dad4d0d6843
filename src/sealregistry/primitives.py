"""
Cryptographic primitives for sealregistry.

Pure functions over fixed-size byte strings: merkle-path recomputation,
merkle tree construction and signature verification. No state.

Merkle combining rule (MUST stay stable, proofs in the wild depend on it):
- parent = SHA-256(min(a, b) || max(a, b)), byte-wise ordering
- a path is applied leaf-upwards, in list order
- an odd node at any level is paired with itself
- empty path: valid iff leaf == root
"""

import hashlib
import hmac
from typing import Protocol, Sequence

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519


HASH_SIZE = 32
SIGNATURE_SIZE = 512
PUBLIC_KEY_SIZE = 256

ED25519_SIGNATURE_SIZE = 64
ED25519_PUBLIC_KEY_SIZE = 32


def bytes_equal(left: bytes, right: bytes) -> bool:
    """
    Constant-time byte comparison to prevent timing side-channel attacks.
    """
    return hmac.compare_digest(bytes(left), bytes(right))


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Combine two nodes into their parent. Order-independent."""
    if right < left:
        left, right = right, left
    return sha256(left + right)


def verify_merkle_path(leaf: bytes, path: Sequence[bytes], root: bytes) -> bool:
    """
    Recompute a root from a leaf and its sibling path and compare to root.

    Args:
        leaf: 32-byte leaf hash (the document content hash)
        path: Sibling hashes, leaf level first
        root: Claimed 32-byte merkle root

    Returns:
        True if the recomputed root byte-equals root. Never raises.
    """
    if len(leaf) != HASH_SIZE or len(root) != HASH_SIZE:
        return False

    current = bytes(leaf)
    for sibling in path:
        if len(sibling) != HASH_SIZE:
            return False
        current = hash_pair(current, bytes(sibling))

    return bytes_equal(current, root)


def _next_level(level: list[bytes]) -> list[bytes]:
    if len(level) % 2 == 1:
        level = level + [level[-1]]
    return [hash_pair(level[i], level[i + 1]) for i in range(0, len(level), 2)]


def compute_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Compute the merkle root over an ordered list of 32-byte leaves.

    A single leaf is its own root.

    Raises:
        ValueError: If leaves is empty or a leaf has the wrong size
    """
    if not leaves:
        raise ValueError("cannot build a merkle tree from zero leaves")
    for leaf in leaves:
        if len(leaf) != HASH_SIZE:
            raise ValueError(f"merkle leaves must be {HASH_SIZE} bytes")

    level = [bytes(leaf) for leaf in leaves]
    while len(level) > 1:
        level = _next_level(level)
    return level[0]


def build_merkle_path(leaves: Sequence[bytes], index: int) -> list[bytes]:
    """
    Build the inclusion path for leaves[index].

    verify_merkle_path(leaves[index], path, compute_merkle_root(leaves))
    holds for every valid index.

    Raises:
        ValueError: If leaves is empty or index is out of range
    """
    if not leaves:
        raise ValueError("cannot build a merkle path from zero leaves")
    if index < 0 or index >= len(leaves):
        raise ValueError(f"leaf index {index} out of range for {len(leaves)} leaves")

    path: list[bytes] = []
    level = [bytes(leaf) for leaf in leaves]
    position = index
    while len(level) > 1:
        if len(level) % 2 == 1:
            level = level + [level[-1]]
        sibling = position + 1 if position % 2 == 0 else position - 1
        path.append(level[sibling])
        level = _next_level(level)
        position //= 2
    return path


class SignatureVerifier(Protocol):
    """Pluggable signature primitive over fixed-size slots."""

    name: str

    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        ...


def _split_slot(slot: bytes, slot_size: int, payload_size: int) -> bytes | None:
    """Return the left-aligned payload of a zero-padded slot, or None."""
    if len(slot) != slot_size:
        return None
    payload, padding = slot[:payload_size], slot[payload_size:]
    if any(padding):
        return None
    return bytes(payload)


class Ed25519Verifier:
    """
    Ed25519 over zero-padded slots.

    The 512-byte signature slot carries the 64-byte signature left-aligned;
    the 256-byte key slot carries the 32-byte raw public key left-aligned.
    """

    name = "ed25519"

    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        raw_signature = _split_slot(signature, SIGNATURE_SIZE, ED25519_SIGNATURE_SIZE)
        raw_key = _split_slot(public_key, PUBLIC_KEY_SIZE, ED25519_PUBLIC_KEY_SIZE)
        if raw_signature is None or raw_key is None:
            return False

        try:
            key = ed25519.Ed25519PublicKey.from_public_bytes(raw_key)
            key.verify(raw_signature, bytes(message))
        except (InvalidSignature, ValueError):
            return False
        return True


class SizeOnlyVerifier:
    """
    Accepts any correctly-sized signature.

    For deployments that check signatures upstream of the registry.
    """

    name = "none"

    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        return len(signature) == SIGNATURE_SIZE and len(public_key) == PUBLIC_KEY_SIZE


_VERIFIERS: dict[str, type] = {
    Ed25519Verifier.name: Ed25519Verifier,
    SizeOnlyVerifier.name: SizeOnlyVerifier,
}


def get_verifier(scheme: str) -> SignatureVerifier:
    """
    Look up a signature verifier by scheme name.

    Raises:
        ValueError: If the scheme is unknown
    """
    try:
        return _VERIFIERS[scheme]()
    except KeyError:
        raise ValueError(
            f"Unsupported signature scheme: {scheme}. Supported: {', '.join(sorted(_VERIFIERS))}"
        ) from None


def verify_signature(
    message: bytes,
    signature: bytes,
    public_key: bytes,
    verifier: SignatureVerifier | None = None,
) -> bool:
    """
    Verify a signature slot against a message and public-key slot.

    Returns False (never raises) on malformed input.
    """
    verifier = verifier or Ed25519Verifier()
    return verifier.verify(message, signature, public_key)


def pack_signature(raw_signature: bytes) -> bytes:
    """Left-align a raw signature into a zero-padded 512-byte slot."""
    if len(raw_signature) > SIGNATURE_SIZE:
        raise ValueError(f"signature longer than {SIGNATURE_SIZE} bytes")
    return bytes(raw_signature).ljust(SIGNATURE_SIZE, b"\x00")


def pack_public_key(raw_public_key: bytes) -> bytes:
    """Left-align a raw public key into a zero-padded 256-byte slot."""
    if len(raw_public_key) > PUBLIC_KEY_SIZE:
        raise ValueError(f"public key longer than {PUBLIC_KEY_SIZE} bytes")
    return bytes(raw_public_key).ljust(PUBLIC_KEY_SIZE, b"\x00")
