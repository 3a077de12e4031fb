"""Tests for the SQLite notarization ledger: versioning, immutability, ownership."""

from __future__ import annotations

import pytest

from dpplink.bridge.signer import Ed25519Signer
from dpplink.core.errors import RecordNotFoundError
from dpplink.core.ledger import (
    ImmutableRecordError,
    LedgerBackend,
    OwnershipError,
    SqliteNotarizationLedger,
)
from dpplink.core.state_codec import dynamic_state, locked_state
from dpplink.models.records import DeleteLock, DeleteLockKind, ImmutableRecord, MutableRecord

T0 = 1714557600  # conftest clock start


class TestCreate:
    def test_satisfies_backend_protocol(self, ledger: SqliteNotarizationLedger):
        assert isinstance(ledger, LedgerBackend)

    def test_create_mutable(self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer):
        state = dynamic_state("bafyA", 1, "t")
        record_id = ledger.create_mutable(
            state, signer=signer, description="DPP - estado vivo", metadata="dpplink"
        )
        assert record_id.startswith("0x") and len(record_id) == 66

        record = ledger.read_by_id(record_id)
        assert isinstance(record, MutableRecord)
        assert record.state == state
        assert record.state_version_count == 1
        assert record.created_at == T0
        assert record.last_state_change_at == T0
        assert record.owner == signer.address()
        assert record.description == "DPP - estado vivo"
        assert record.updatable_metadata == "dpplink"

    def test_create_immutable(self, ledger: SqliteNotarizationLedger):
        record_id = ledger.create_immutable(locked_state("bafyA", "t"), description="snap")
        record = ledger.read_by_id(record_id)
        assert isinstance(record, ImmutableRecord)
        assert record.state_version_count == 1
        assert record.delete_lock.kind == DeleteLockKind.NONE

    def test_delete_lock_is_persisted(self, ledger: SqliteNotarizationLedger):
        record_id = ledger.create_immutable(
            locked_state("bafyA", "t"), delete_lock=DeleteLock.until_timestamp(T0 + 3600)
        )
        lock = ledger.read_by_id(record_id).delete_lock
        assert lock.until == T0 + 3600
        assert lock.is_active(T0)
        assert not lock.is_active(T0 + 3600)

    def test_same_state_gets_distinct_ids(self, ledger: SqliteNotarizationLedger):
        state = locked_state("bafyA", "t")
        assert ledger.create_immutable(state) != ledger.create_immutable(state)


class TestUpdateState:
    def test_each_update_bumps_version_by_one(
        self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer, clock
    ):
        record_id = ledger.create_mutable(dynamic_state("bafyA", 1, "t"), signer=signer)
        for expected in (2, 3, 4):
            clock.advance(60)
            receipt = ledger.update_mutable_state(
                record_id, dynamic_state("bafyB", expected, "t"), signer=signer
            )
            assert receipt.version == expected

        record = ledger.read_by_id(record_id)
        assert record.state_version_count == 4
        assert record.created_at == T0
        assert record.last_state_change_at == T0 + 180

    def test_update_replaces_full_state(
        self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer
    ):
        record_id = ledger.create_mutable(dynamic_state("bafyA", 1, "t"), signer=signer)
        ledger.update_mutable_state(record_id, b'{"latest_cid":"bafyB"}', signer=signer)
        assert ledger.read_by_id(record_id).state == b'{"latest_cid":"bafyB"}'

    def test_non_owner_is_rejected(
        self,
        ledger: SqliteNotarizationLedger,
        signer: Ed25519Signer,
        other_signer: Ed25519Signer,
    ):
        record_id = ledger.create_mutable(dynamic_state("bafyA", 1, "t"), signer=signer)
        with pytest.raises(OwnershipError):
            ledger.update_mutable_state(
                record_id, dynamic_state("bafyX", 2, "t"), signer=other_signer
            )
        record = ledger.read_by_id(record_id)
        assert record.state_version_count == 1
        assert record.state == dynamic_state("bafyA", 1, "t")

    def test_locked_record_cannot_change(
        self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer
    ):
        record_id = ledger.create_immutable(locked_state("bafyA", "t"))
        with pytest.raises(ImmutableRecordError):
            ledger.update_mutable_state(record_id, locked_state("bafyB", "t"), signer=signer)
        assert ledger.read_by_id(record_id).state == locked_state("bafyA", "t")

    def test_unknown_record(self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer):
        with pytest.raises(RecordNotFoundError):
            ledger.update_mutable_state("0x" + "ab" * 32, b"{}", signer=signer)


class TestUpdateMetadata:
    def test_metadata_change_keeps_version(
        self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer
    ):
        record_id = ledger.create_mutable(dynamic_state("bafyA", 1, "t"), signer=signer)
        receipt = ledger.update_mutable_metadata(record_id, "audited", signer=signer)
        record = ledger.read_by_id(record_id)
        assert receipt.version == 1
        assert record.updatable_metadata == "audited"
        assert record.state_version_count == 1

    def test_metadata_requires_owner(
        self,
        ledger: SqliteNotarizationLedger,
        signer: Ed25519Signer,
        other_signer: Ed25519Signer,
    ):
        record_id = ledger.create_mutable(dynamic_state("bafyA", 1, "t"), signer=signer)
        with pytest.raises(OwnershipError):
            ledger.update_mutable_metadata(record_id, "x", signer=other_signer)


class TestReadAndHistory:
    def test_unknown_id(self, ledger: SqliteNotarizationLedger):
        with pytest.raises(RecordNotFoundError):
            ledger.read_by_id("0x" + "0" * 64)

    @pytest.mark.parametrize("bad_id", ["", "abc", "0x123", "0x" + "z" * 64])
    def test_malformed_id(self, ledger: SqliteNotarizationLedger, bad_id: str):
        with pytest.raises(RecordNotFoundError):
            ledger.read_by_id(bad_id)

    def test_history_is_append_only(
        self, ledger: SqliteNotarizationLedger, signer: Ed25519Signer
    ):
        record_id = ledger.create_mutable(dynamic_state("bafyA", 1, "t"), signer=signer)
        ledger.update_mutable_state(record_id, dynamic_state("bafyB", 2, "t"), signer=signer)
        ledger.update_mutable_state(record_id, dynamic_state("bafyC", 3, "t"), signer=signer)

        history = ledger.state_history(record_id)
        assert [r.version for r in history] == [1, 2, 3]
        assert len({r.digest for r in history}) == 3

    def test_history_survives_reopen(self, tmp_path, signer: Ed25519Signer):
        db = tmp_path / "ledger.db"
        record_id = SqliteNotarizationLedger(db).create_mutable(b"{}", signer=signer)
        assert SqliteNotarizationLedger(db).read_by_id(record_id).state == b"{}"
