"""
Sealing engine tests.

Covers uniqueness, sequential ids, ownership and status gates, signature
re-checks, read consistency, eager proof/signature enforcement and batch
atomicity.
"""

from datetime import datetime, timezone

import pytest

from conftest import content_hash_of, make_document

from sealregistry import (
    AlreadyExistsError,
    BatchStatus,
    BoundaryError,
    DocumentInput,
    ErrorCode,
    InvalidProofError,
    InvalidSignatureError,
    InvalidStatusError,
    NotAuthorizedError,
    NotFoundError,
    RegistrySettings,
    SealingEngine,
    SealRegistry,
    SIGNATURE_SIZE,
    validate_document_input,
)


OWNER = "deployer"
OTHER = "wallet_1"


class TestEndToEnd:

    def test_seal_reseal_and_status_changes(self, registry, signer):
        fields = make_document(signer, "H1")

        assert registry.seal_document(**fields, caller=OWNER) == 1

        with pytest.raises(AlreadyExistsError) as info:
            registry.seal_document(**fields, caller=OWNER)
        assert info.value.error.code == ErrorCode.ALREADY_EXISTS
        assert info.value.error.code.value == 402

        assert registry.update_document_status(1, "revoked", caller=OWNER) is True
        assert registry.get_document(1).status == "revoked"

        with pytest.raises(NotAuthorizedError) as info:
            registry.update_document_status(1, "active", caller=OTHER)
        assert info.value.error.code.value == 401

        with pytest.raises(InvalidStatusError) as info:
            registry.update_document_status(1, "bogus", caller=OWNER)
        assert info.value.error.code.value == 406


class TestSealDocument:

    def test_first_id_is_one(self, registry, signer):
        assert registry.seal_document(**make_document(signer, "first"), caller=OWNER) == 1

    def test_ids_are_sequential(self, registry, signer):
        ids = [
            registry.seal_document(**make_document(signer, f"seq-{i}"), caller=OWNER)
            for i in range(5)
        ]
        assert ids == [1, 2, 3, 4, 5]

    def test_duplicate_does_not_consume_id(self, registry, signer):
        fields = make_document(signer, "dup")
        registry.seal_document(**fields, caller=OWNER)
        with pytest.raises(AlreadyExistsError):
            registry.seal_document(**fields, caller=OTHER)
        assert registry.seal_document(**make_document(signer, "next"), caller=OWNER) == 2

    def test_duplicate_reports_existing_id(self, registry, signer):
        fields = make_document(signer, "dup")
        registry.seal_document(**fields, caller=OWNER)
        with pytest.raises(AlreadyExistsError) as info:
            registry.seal_document(**fields, caller=OWNER)
        assert info.value.to_dict()["details"]["existing_id"] == 1

    def test_record_matches_submission(self, signer, settings):
        sealed_at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        registry = SealRegistry(engine=SealingEngine(settings, clock=lambda: sealed_at))
        fields = make_document(signer, "stored")

        document_id = registry.seal_document(**fields, caller=OWNER)
        record = registry.get_document(document_id)

        assert record.content_hash == fields["content_hash"]
        assert record.title == fields["title"]
        assert record.description == fields["description"]
        assert record.category == fields["category"]
        assert record.signature == fields["signature"]
        assert record.merkle_root == fields["merkle_root"]
        assert record.public_key == fields["public_key"]
        assert record.owner == OWNER
        assert record.status == "active"
        assert record.sealed_at == sealed_at

    def test_unknown_id_reads_as_none(self, registry, signer):
        assert registry.get_document(1) is None
        registry.seal_document(**make_document(signer, "one"), caller=OWNER)
        assert registry.get_document(2) is None
        assert registry.get_document(0) is None

    def test_lookup_by_hash(self, registry, signer):
        fields = make_document(signer, "by-hash")
        registry.seal_document(**fields, caller=OWNER)
        assert registry.get_document_by_hash(fields["content_hash"]).id == 1
        assert registry.get_document_by_hash("0x" + content_hash_of("absent").hex()) is None

    def test_hex_inputs_accepted(self, registry, signer):
        fields = make_document(signer, "hex")
        hex_fields = {
            key: ("0x" + value.hex() if isinstance(value, bytes) else value)
            for key, value in fields.items()
        }
        hex_fields["merkle_path"] = ["0x" + node.hex() for node in fields["merkle_path"]]
        assert registry.seal_document(**hex_fields, caller=OWNER) == 1
        assert registry.get_document(1).content_hash == fields["content_hash"]


class TestEagerEnforcement:

    def test_invalid_proof_rejected(self, registry, signer):
        fields = make_document(signer, "bad-proof")
        fields["merkle_root"] = content_hash_of("some other root")
        with pytest.raises(InvalidProofError) as info:
            registry.seal_document(**fields, caller=OWNER)
        assert info.value.error.code == ErrorCode.INVALID_PROOF

    def test_invalid_signature_rejected(self, registry, signer):
        fields = make_document(signer, "bad-sig")
        fields["signature"] = b"\x00" * SIGNATURE_SIZE
        with pytest.raises(InvalidSignatureError) as info:
            registry.seal_document(**fields, caller=OWNER)
        assert info.value.error.code == ErrorCode.INVALID_SIGNATURE

    def test_failed_seal_leaves_no_trace(self, registry, signer):
        fields = make_document(signer, "rejected")
        fields["signature"] = b"\x00" * SIGNATURE_SIZE
        with pytest.raises(InvalidSignatureError):
            registry.seal_document(**fields, caller=OWNER)

        engine = registry.engine
        assert engine.document_count == 0
        assert engine.get_document_by_hash(fields["content_hash"]) is None
        assert registry.seal_document(**make_document(signer, "accepted"), caller=OWNER) == 1

    def test_lazy_mode_accepts_reference_fixture(self):
        """Self-referential root/path and arbitrary bytes seal when checks are off."""
        settings = RegistrySettings(
            enforce_proofs=False,
            enforce_signatures=False,
            signature_scheme="none",
        )
        registry = SealRegistry(settings)
        value = bytes(range(1, 33))
        signature = value * 2 + b"\x00" * (SIGNATURE_SIZE - 64)
        public_key = value + b"\x00" * 224

        document_id = registry.seal_document(
            value, "Test Document", "Test Description", "Test",
            signature, value, public_key, [value], caller=OWNER,
        )
        assert document_id == 1
        assert registry.verify_signature(1, signature)
        assert not registry.verify_signature(1, b"\x00" * SIGNATURE_SIZE)

        result = registry.engine.verify_document(1)
        assert not result.valid
        assert [e.code for e in result.errors] == [ErrorCode.INVALID_PROOF]

    def test_lazy_mode_with_ed25519_keeps_exact_signature_match(self):
        """Unverified signatures are still stored and still match byte for byte."""
        settings = RegistrySettings(
            enforce_proofs=False,
            enforce_signatures=False,
            signature_scheme="ed25519",
        )
        registry = SealRegistry(settings)
        value = bytes(range(1, 33))
        signature = value * 2 + b"\x00" * (SIGNATURE_SIZE - 64)
        public_key = value + b"\x00" * 224

        registry.seal_document(
            value, "Test Document", "Test Description", "Test",
            signature, value, public_key, [value], caller=OWNER,
        )

        assert registry.verify_signature(1, signature) is True
        assert registry.verify_signature(1, b"\x00" * SIGNATURE_SIZE) is False

        result = registry.engine.verify_document(1)
        assert [e.code for e in result.errors] == [
            ErrorCode.INVALID_PROOF,
            ErrorCode.INVALID_SIGNATURE,
        ]


class TestStatus:

    def test_non_owner_rejected_even_for_invalid_status(self, registry, signer):
        registry.seal_document(**make_document(signer, "owned"), caller=OWNER)
        with pytest.raises(NotAuthorizedError):
            registry.update_document_status(1, "bogus", caller=OTHER)

    def test_unknown_document(self, registry):
        with pytest.raises(NotFoundError) as info:
            registry.update_document_status(99, "revoked", caller=OWNER)
        assert info.value.error.code == ErrorCode.NOT_FOUND

    def test_revoked_can_return_to_active(self, registry, signer):
        registry.seal_document(**make_document(signer, "flip"), caller=OWNER)
        registry.update_document_status(1, "revoked", caller=OWNER)
        registry.update_document_status(1, "active", caller=OWNER)
        assert registry.get_document(1).status == "active"

    def test_failed_update_keeps_status(self, registry, signer):
        registry.seal_document(**make_document(signer, "keep"), caller=OWNER)
        with pytest.raises(InvalidStatusError):
            registry.update_document_status(1, "bogus", caller=OWNER)
        assert registry.get_document(1).status == "active"
        assert registry.engine.status_history(1) == []

    def test_configured_status_set(self, signer):
        settings = RegistrySettings(allowed_statuses=["active", "superseded"])
        registry = SealRegistry(settings)
        registry.seal_document(**make_document(signer, "custom"), caller=OWNER)
        assert registry.update_document_status(1, "superseded", caller=OWNER)
        with pytest.raises(InvalidStatusError):
            registry.update_document_status(1, "revoked", caller=OWNER)

    def test_terminal_status_policy(self, signer):
        settings = RegistrySettings(terminal_statuses=["revoked"])
        registry = SealRegistry(settings)
        registry.seal_document(**make_document(signer, "terminal"), caller=OWNER)
        registry.update_document_status(1, "revoked", caller=OWNER)
        with pytest.raises(InvalidStatusError, match="terminal"):
            registry.update_document_status(1, "active", caller=OWNER)
        assert registry.get_document(1).status == "revoked"

    def test_history_records_previous_status(self, registry, signer):
        registry.seal_document(**make_document(signer, "history"), caller=OWNER)
        registry.update_document_status(1, "expired", caller=OWNER)
        registry.update_document_status(1, "revoked", caller=OWNER)

        history = registry.engine.status_history(1)
        assert [(c.previous, c.new) for c in history] == [
            ("active", "expired"),
            ("expired", "revoked"),
        ]
        assert all(c.changed_by == OWNER for c in history)

    def test_history_unknown_document(self, engine):
        with pytest.raises(NotFoundError):
            engine.status_history(1)


class TestVerifySignature:

    def test_stored_signature_verifies(self, registry, signer):
        fields = make_document(signer, "sig")
        registry.seal_document(**fields, caller=OWNER)
        assert registry.verify_signature(1, fields["signature"]) is True

    def test_wrong_signature_is_false(self, registry, signer):
        fields = make_document(signer, "sig")
        registry.seal_document(**fields, caller=OWNER)
        assert registry.verify_signature(1, "0x" + "00" * SIGNATURE_SIZE) is False

    def test_single_bit_difference_is_false(self, registry, signer):
        fields = make_document(signer, "sig")
        registry.seal_document(**fields, caller=OWNER)
        signature = fields["signature"]
        flipped = signature[:10] + bytes([signature[10] ^ 0x01]) + signature[11:]
        assert registry.verify_signature(1, flipped) is False

    def test_another_valid_signature_is_false(self, registry, signer):
        """A valid signature over the same hash by a different key is not the sealed one."""
        from cryptography.hazmat.primitives.asymmetric import ed25519
        from sealregistry import pack_signature

        fields = make_document(signer, "sig")
        registry.seal_document(**fields, caller=OWNER)
        other = pack_signature(ed25519.Ed25519PrivateKey.generate().sign(fields["content_hash"]))
        assert registry.verify_signature(1, other) is False

    def test_unknown_id(self, registry):
        with pytest.raises(NotFoundError):
            registry.verify_signature(1, b"\x00" * SIGNATURE_SIZE)

    def test_verify_document_valid(self, registry, signer):
        registry.seal_document(**make_document(signer, "reverify"), caller=OWNER)
        result = registry.engine.verify_document(1)
        assert result.valid
        assert result.to_dict() == {"valid": True, "errors": []}


class TestBatch:

    def test_batch_seals_in_order(self, registry, signer):
        documents = [make_document(signer, f"batch-{i}") for i in range(3)]

        assert registry.seal_document_batch(documents, caller=OWNER) == 1

        batch = registry.get_batch(1)
        assert batch.status == BatchStatus.SEALED.value == "sealed"
        assert batch.document_ids == (1, 2, 3)
        assert batch.owner == OWNER
        for document_id, fields in zip(batch.document_ids, documents):
            assert registry.get_document(document_id).content_hash == fields["content_hash"]

    def test_ids_shared_with_single_path(self, registry, signer):
        registry.seal_document(**make_document(signer, "single"), caller=OWNER)
        registry.seal_document_batch(
            [make_document(signer, "b1"), make_document(signer, "b2")], caller=OWNER,
        )
        assert registry.seal_document(**make_document(signer, "after"), caller=OWNER) == 4
        assert registry.get_batch(1).document_ids == (2, 3)

    def test_batch_ids_independent(self, registry, signer):
        registry.seal_document(**make_document(signer, "s1"), caller=OWNER)
        registry.seal_document(**make_document(signer, "s2"), caller=OWNER)
        assert registry.seal_document_batch([make_document(signer, "b1")], caller=OWNER) == 1
        assert registry.seal_document_batch([make_document(signer, "b2")], caller=OWNER) == 2

    def test_intra_batch_duplicate_fails_whole_batch(self, registry, signer):
        first = make_document(signer, "same")
        second = dict(first, title="Batch Doc 2")

        with pytest.raises(AlreadyExistsError) as info:
            registry.seal_document_batch([first, second], caller=OWNER)

        assert info.value.error.details["index"] == 1
        assert registry.engine.document_count == 0
        assert registry.get_batch(1) is None

    def test_existing_hash_fails_whole_batch(self, registry, signer):
        existing = make_document(signer, "existing")
        registry.seal_document(**existing, caller=OWNER)

        with pytest.raises(AlreadyExistsError):
            registry.seal_document_batch(
                [make_document(signer, "fresh"), existing], caller=OWNER,
            )

        assert registry.engine.document_count == 1
        assert registry.get_document(2) is None
        assert registry.seal_document(**make_document(signer, "fresh"), caller=OWNER) == 2

    def test_invalid_item_fails_whole_batch(self, registry, signer):
        documents = [make_document(signer, f"item-{i}") for i in range(3)]
        documents[2]["merkle_root"] = content_hash_of("wrong root")

        with pytest.raises(InvalidProofError) as info:
            registry.seal_document_batch(documents, caller=OWNER)

        assert info.value.error.details["index"] == 2
        assert registry.engine.document_count == 0
        assert registry.engine.batch_count == 0

    def test_batch_documents_owned_by_submitter(self, registry, signer):
        registry.seal_document_batch([make_document(signer, "mine")], caller=OWNER)
        with pytest.raises(NotAuthorizedError):
            registry.update_document_status(1, "revoked", caller=OTHER)
        assert registry.update_document_status(1, "revoked", caller=OWNER)

    def test_unknown_batch_reads_as_none(self, registry):
        assert registry.get_batch(1) is None


class TestIdInput:

    def test_bool_id_rejected(self, registry, signer):
        registry.seal_document(**make_document(signer, "one"), caller=OWNER)
        with pytest.raises(BoundaryError):
            registry.get_document(True)
        with pytest.raises(BoundaryError):
            registry.update_document_status(True, "revoked", caller=OWNER)
        with pytest.raises(BoundaryError):
            registry.verify_signature(True, b"\x00" * SIGNATURE_SIZE)
        assert registry.get_document(1).status == "active"

    def test_bool_batch_id_rejected(self, registry, signer):
        registry.seal_document_batch([make_document(signer, "b")], caller=OWNER)
        with pytest.raises(BoundaryError):
            registry.get_batch(True)
        assert registry.get_batch(1) is not None

    def test_non_integer_id_rejected(self, registry):
        with pytest.raises(BoundaryError) as info:
            registry.get_document("1")
        assert info.value.field == "document_id"


class TestBatchBoundary:

    def test_malformed_document_input_rejected(self):
        settings = RegistrySettings(
            enforce_proofs=False,
            enforce_signatures=False,
            signature_scheme="none",
        )
        registry = SealRegistry(settings)
        malformed = DocumentInput(
            content_hash=b"x" * 5,
            title="t" * 5000,
            description="",
            category="",
            signature=b"\x01" * SIGNATURE_SIZE,
            merkle_root=b"r" * 3,
            public_key=b"\x02" * 256,
        )

        with pytest.raises(BoundaryError) as info:
            registry.seal_document_batch([malformed], caller=OWNER)

        assert info.value.field.startswith("documents[0].")
        assert registry.engine.document_count == 0
        assert registry.get_batch(1) is None

    def test_valid_document_input_accepted(self, registry, signer, settings):
        document = validate_document_input(**make_document(signer, "typed"), settings=settings)
        assert registry.seal_document_batch([document], caller=OWNER) == 1
        assert registry.get_document(1).content_hash == document.content_hash
