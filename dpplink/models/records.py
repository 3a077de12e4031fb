"""Notarization record models: Dynamic (mutable) and Locked (immutable).

A Dynamic record's state may be replaced any number of times; each
replacement bumps ``state_version_count`` by exactly one and moves
``last_state_change_at``. A Locked record's state is written once at
creation and never again.

Timestamps are kept in the ledger's native integer representation.
Conversion to ISO-8601 happens at the presentation edge.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class RecordKind(str, Enum):
    """Notarization flavour."""

    DYNAMIC = "dynamic"
    LOCKED = "locked"


class DeleteLockKind(str, Enum):
    NONE = "none"
    UNTIL = "until"


class DeleteLock(BaseModel):
    """Delete-lock policy attached to a Locked record at creation."""

    model_config = ConfigDict(frozen=True)

    kind: DeleteLockKind = DeleteLockKind.NONE
    until: int | None = None  # epoch seconds, only for UNTIL

    @classmethod
    def none(cls) -> DeleteLock:
        return cls()

    @classmethod
    def until_timestamp(cls, epoch_seconds: int) -> DeleteLock:
        return cls(kind=DeleteLockKind.UNTIL, until=epoch_seconds)

    def is_active(self, now: int) -> bool:
        """Whether deletion is currently forbidden by this policy."""
        return self.kind == DeleteLockKind.UNTIL and self.until is not None and now < self.until


class LedgerRecord(BaseModel):
    """Fields common to both notarization flavours."""

    model_config = ConfigDict(frozen=True)

    record_id: str  # canonical "0x"-prefixed hex
    kind: RecordKind
    state: bytes
    state_metadata: str | None = None
    description: str | None = None  # immutable, set at creation
    state_version_count: int = 1
    created_at: int | None = None


class MutableRecord(LedgerRecord):
    """Dynamic notarization: versioned, owner-controlled state."""

    kind: Literal[RecordKind.DYNAMIC] = RecordKind.DYNAMIC
    updatable_metadata: str | None = None
    last_state_change_at: int | None = None
    owner: str | None = None  # signer address allowed to update


class ImmutableRecord(LedgerRecord):
    """Locked notarization: a sealed snapshot with no update operation."""

    kind: Literal[RecordKind.LOCKED] = RecordKind.LOCKED
    delete_lock: DeleteLock = DeleteLock()


AnyRecord = Union[MutableRecord, ImmutableRecord]


class LedgerReceipt(BaseModel):
    """Acknowledgement of an accepted ledger write."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    version: int
    digest: str  # sha256 over the signed write, hex
    timestamp: int
